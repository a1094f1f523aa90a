"""Service for aggregate learning statistics."""
import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Tuple

from vocabsrs.clock import Clock
from vocabsrs.models.review_models import ALL_SKILLS, ItemStatus, Skill, Stats, WeakItem
from vocabsrs.services.attempt_log import AttemptLog
from vocabsrs.services.scheduler_service import SchedulerService
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


def calculate_streak(study_days: Iterable[date], today: date) -> Tuple[int, int]:
    """Current and longest runs of consecutive study days.

    The current streak counts back from ``today``; a day without study today
    means a current streak of 0.
    """
    days = set(study_days)
    current = 0
    check = today
    while check in days:
        current += 1
        check -= timedelta(days=1)

    longest = 0
    run = 0
    previous = None
    for day in sorted(days):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day
    return current, longest


class StatsService:
    """Service for read-only statistics over progress and attempts."""

    def __init__(
        self,
        store: ReviewStore,
        clock: Clock,
        attempt_log: AttemptLog,
        scheduler: SchedulerService,
    ):
        """Initialize the service with a store and its collaborators."""
        self.store = store
        self.clock = clock
        self.attempt_log = attempt_log
        self.scheduler = scheduler

    async def compute_stats(self) -> Stats:
        """Aggregate progress rows and the attempt log. No side effects."""
        today = self.clock.today()
        items = await self.store.list_items()
        item_ids = {item.id for item in items}

        mastered_by_item: Dict[int, Dict[Skill, bool]] = defaultdict(dict)
        orphaned = 0
        for progress in await self.store.list_progress():
            if progress.item_id not in item_ids:
                orphaned += 1
                continue
            mastered_by_item[progress.item_id][progress.skill] = progress.mastered
        if orphaned:
            logger.warning("Skipped %d progress rows of deleted items", orphaned)

        stats = Stats(total_items=len(items))
        stats.mastered_a = sum(1 for m in mastered_by_item.values() if m.get(Skill.A))
        stats.mastered_b = sum(1 for m in mastered_by_item.values() if m.get(Skill.B))
        stats.mastered_c = sum(1 for m in mastered_by_item.values() if m.get(Skill.C))
        stats.complete_master = sum(
            1 for m in mastered_by_item.values() if all(m.get(s) for s in ALL_SKILLS)
        )
        stats.status_counts = {status.value: 0 for status in ItemStatus}
        for item in items:
            stats.status_counts[item.status.value] += 1

        attempts = await self.attempt_log.list_all()
        stats.total_attempts = len(attempts)
        stats.total_correct = sum(1 for a in attempts if a.result)
        stats.overall_accuracy = stats.total_correct / stats.total_attempts if attempts else 0.0
        timed = [a.elapsed_ms for a in attempts if (a.elapsed_ms or 0) > 0]
        stats.average_response_ms = sum(timed) / len(timed) if timed else 0.0

        calendar = self.attempt_log.study_calendar(attempts)
        today_counts = calendar.get(today, {"count": 0, "correct": 0})
        stats.today_attempts = today_counts["count"]
        stats.today_correct = today_counts["correct"]
        stats.today_accuracy = stats.today_correct / stats.today_attempts if stats.today_attempts else 0.0
        stats.current_streak, stats.longest_streak = calculate_streak(calendar.keys(), today)

        stats.due_count = await self.scheduler.count_due_queue(items)
        return stats

    async def weak_items(self, limit: int = 10) -> List[WeakItem]:
        """Items with wrong answers, highest wrong rate first. No side effects."""
        items = {item.id: item for item in await self.store.list_items()}
        counts: Dict[int, List[int]] = defaultdict(lambda: [0, 0])
        for progress in await self.store.list_progress():
            if progress.item_id not in items:
                continue
            counts[progress.item_id][0] += progress.correct_count
            counts[progress.item_id][1] += progress.wrong_count

        weak = [
            WeakItem(item=items[item_id], correct_count=correct, wrong_count=wrong)
            for item_id, (correct, wrong) in counts.items()
            if wrong > 0
        ]
        weak.sort(key=lambda w: w.wrong_rate, reverse=True)
        return weak[:limit]
