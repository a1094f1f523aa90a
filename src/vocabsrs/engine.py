"""Engine facade wiring the services around one store."""
import logging
from typing import Any, Iterable, List, Optional, Sequence

from vocabsrs.clock import Clock
from vocabsrs.models.review_models import (
    ALL_SKILLS,
    ItemRecord,
    ProgressKey,
    ProgressRecord,
    QueueEntry,
    ReviewSessionData,
    SessionSummary,
    Skill,
    Stats,
    WeakItem,
)
from vocabsrs.services.achievement_service import AchievementService
from vocabsrs.services.answer_recorder import AnswerRecorder
from vocabsrs.services.attempt_log import AttemptLog
from vocabsrs.services.interval_ladder import IntervalLadder, normalize_intervals
from vocabsrs.services.progress_service import ProgressService
from vocabsrs.services.scheduler_service import SchedulerService
from vocabsrs.services.session_service import SessionService
from vocabsrs.services.settings_service import SettingsService
from vocabsrs.services.stats_service import StatsService
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


class VocabEngine:
    """Spaced-repetition engine exposed to the UI."""

    def __init__(self, store: ReviewStore, clock: Optional[Clock] = None):
        """Initialize the engine with an injected store."""
        self.store = store
        self.clock = clock or Clock()
        self.settings_service = SettingsService(store)
        self.progress_service = ProgressService(store, self.clock)
        self.attempt_log = AttemptLog(store, self.clock)
        self.scheduler = SchedulerService(store, self.clock, self.progress_service, self.settings_service)
        self.recorder = AnswerRecorder(
            store, self.clock, self.progress_service, self.attempt_log, self.settings_service
        )
        self.stats_service = StatsService(store, self.clock, self.attempt_log, self.scheduler)
        self.achievement_service = AchievementService(store, self.clock)
        self.session_service = SessionService(
            store, self.clock, self.scheduler, self.recorder, self.progress_service
        )

    # Interval ladder
    @staticmethod
    def normalize_intervals(raw: Iterable[Any]) -> List[int]:
        return normalize_intervals(raw)

    async def get_ladder(self) -> IntervalLadder:
        return await self.settings_service.get_ladder()

    async def update_intervals(self, raw: Iterable[Any]) -> IntervalLadder:
        return await self.settings_service.update_intervals(raw)

    # Scheduling
    async def build_due_queue(
        self,
        items: Optional[Iterable[ItemRecord]] = None,
        skills: Sequence[Skill] = ALL_SKILLS,
        limit: Optional[int] = None,
    ) -> List[QueueEntry]:
        return await self.scheduler.build_due_queue(items, skills, limit)

    async def count_due_queue(
        self,
        items: Optional[Iterable[ItemRecord]] = None,
        skills: Sequence[Skill] = ALL_SKILLS,
    ) -> int:
        return await self.scheduler.count_due_queue(items, skills)

    # Recording
    async def record_answer(
        self, item: ItemRecord, skill: Skill, correct: bool, elapsed_ms: int = 0
    ) -> ProgressRecord:
        return await self.recorder.record_answer(item, skill, correct, elapsed_ms)

    # Stats and achievements
    async def compute_stats(self) -> Stats:
        return await self.stats_service.compute_stats()

    async def evaluate_achievements(self, stats: Optional[Stats] = None) -> List[str]:
        if stats is None:
            stats = await self.compute_stats()
        return await self.achievement_service.evaluate_achievements(stats)

    async def weak_items(self, limit: int = 10) -> List[WeakItem]:
        return await self.stats_service.weak_items(limit)

    # Sessions
    async def start_session(
        self,
        session_id: Optional[str] = None,
        limit: Optional[int] = None,
        skills: Sequence[Skill] = ALL_SKILLS,
    ) -> ReviewSessionData:
        return await self.session_service.start_session(session_id, limit, skills)

    async def answer_in_session(
        self, key: ProgressKey, correct: bool, elapsed_ms: int = 0, session_id: Optional[str] = None
    ) -> ProgressRecord:
        return await self.session_service.answer(key, correct, elapsed_ms, session_id)

    async def finish_session(self, session_id: Optional[str] = None) -> SessionSummary:
        return await self.session_service.finish(session_id)
