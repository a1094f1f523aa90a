"""Service for reading and updating the interval ladder."""
import logging
from typing import Any, Iterable, List, Optional

from vocabsrs.config import settings
from vocabsrs.services.interval_ladder import IntervalLadder
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)

INTERVALS_KEY = "intervals"


class SettingsService:
    """Service for the learner's interval ladder."""

    def __init__(self, store: ReviewStore, default_intervals: Optional[List[int]] = None):
        """Initialize the service with a store."""
        self.store = store
        self.default_intervals = default_intervals or settings.learning.repetition_intervals

    async def get_ladder(self) -> IntervalLadder:
        """Read the ladder once; raises InvalidConfiguration if it is unusable."""
        values = await self.store.get_settings()
        raw = values.get(INTERVALS_KEY) or self.default_intervals
        return IntervalLadder.from_raw(raw)

    async def update_intervals(self, raw: Iterable[Any]) -> IntervalLadder:
        """Validate and persist a new ladder. Nothing is written when it is rejected."""
        ladder = IntervalLadder.from_raw(raw)
        await self.store.put_settings({INTERVALS_KEY: list(ladder.intervals)})
        logger.info("Interval ladder updated: %s", list(ladder.intervals))
        return ladder
