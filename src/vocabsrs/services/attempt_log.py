"""Append-only log of graded answers."""
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from vocabsrs.clock import Clock
from vocabsrs.models.review_models import AttemptRecord, Skill
from vocabsrs.services.store import ReviewStore


class AttemptLog:
    """Service for appending and reading attempts."""

    def __init__(self, store: ReviewStore, clock: Clock):
        """Initialize the service with a store and a clock."""
        self.store = store
        self.clock = clock

    async def append(
        self,
        item_id: int,
        skill: Skill,
        result: bool,
        elapsed_ms: int = 0,
        ts: Optional[int] = None,
    ) -> AttemptRecord:
        attempt = AttemptRecord(
            item_id=item_id,
            skill=skill,
            result=bool(result),
            ts=self.clock.now_ms() if ts is None else ts,
            elapsed_ms=elapsed_ms,
        )
        await self.store.append_attempt(attempt)
        return attempt

    async def list_all(self) -> List[AttemptRecord]:
        return await self.store.list_attempts()

    def study_calendar(self, attempts: List[AttemptRecord]) -> Dict[date, Dict[str, int]]:
        """Per-day attempt and correct counts."""
        calendar: Dict[date, Dict[str, int]] = defaultdict(lambda: {"count": 0, "correct": 0})
        for attempt in attempts:
            day = calendar[self.clock.date_of_ms(attempt.ts)]
            day["count"] += 1
            if attempt.result:
                day["correct"] += 1
        return dict(calendar)
