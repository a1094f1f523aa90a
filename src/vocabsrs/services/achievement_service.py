"""Service for threshold-based achievements."""
import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple

from vocabsrs.clock import Clock
from vocabsrs.models.review_models import AchievementRecord, Stats
from vocabsrs.monitoring import achievements_unlocked
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)

COUNT_THRESHOLDS = (
    10, 20, 30, 40, 50, 75, 100, 150, 200, 250, 300, 400, 500, 750, 1000,
    1250, 1500, 2000, 3000, 4000, 5000, 6000, 7000, 8000, 10000,
)
ATTEMPT_THRESHOLDS = (
    10, 50, 100, 200, 300, 400, 500, 750, 1000, 1500, 2000, 3000, 4000, 5000,
    6000, 7000, 8000, 10000, 12500, 15000, 17500, 20000, 30000, 40000, 50000,
)
STREAK_THRESHOLDS = (7, 30, 90, 180)


@dataclass(frozen=True)
class AchievementRule:
    """A metric read from Stats and the thresholds that unlock codes for it."""
    prefix: str
    metric: Callable[[Stats], int]
    thresholds: Tuple[int, ...]

    def codes(self) -> List[Tuple[str, int]]:
        return [(f"{self.prefix}_{threshold}", threshold) for threshold in self.thresholds]


ACHIEVEMENT_RULES = (
    AchievementRule("registered", lambda s: s.total_items, COUNT_THRESHOLDS),
    AchievementRule("masterA", lambda s: s.mastered_a, COUNT_THRESHOLDS),
    AchievementRule("masterB", lambda s: s.mastered_b, COUNT_THRESHOLDS),
    AchievementRule("masterC", lambda s: s.mastered_c, COUNT_THRESHOLDS),
    AchievementRule("masterAll", lambda s: s.complete_master, COUNT_THRESHOLDS),
    AchievementRule("attempts", lambda s: s.total_attempts, ATTEMPT_THRESHOLDS),
    AchievementRule("correct", lambda s: s.total_correct, ATTEMPT_THRESHOLDS),
    AchievementRule("streak", lambda s: s.current_streak, STREAK_THRESHOLDS),
)


class AchievementService:
    """Service for unlocking achievements from statistics."""

    def __init__(self, store: ReviewStore, clock: Clock):
        """Initialize the service with a store and a clock."""
        self.store = store
        self.clock = clock

    async def evaluate_achievements(self, stats: Stats) -> List[str]:
        """Record every reached, not yet owned threshold and return the new codes.

        Each threshold is checked on its own against the live value.
        """
        owned = {achievement.code for achievement in await self.store.list_achievements()}
        newly = []
        for rule in ACHIEVEMENT_RULES:
            value = rule.metric(stats)
            for code, threshold in rule.codes():
                if code not in owned and value >= threshold:
                    newly.append((rule.prefix, code))

        if not newly:
            return []

        achieved_at = self.clock.now_ms()
        async with self.store.transaction():
            for _, code in newly:
                await self.store.add_achievement(AchievementRecord(code=code, achieved_at=achieved_at))

        for prefix, code in newly:
            achievements_unlocked.labels(prefix=prefix).inc()
            logger.info("Achievement unlocked: %s", code)
        return [code for _, code in newly]
