"""Interval ladder: how far review intervals grow on consecutive correct answers."""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Tuple

from vocabsrs.config import MIN_LADDER_LENGTH
from vocabsrs.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


def _as_positive_int(value: Any) -> Optional[int]:
    """Coerce a user-supplied value to a positive int, or None if unusable."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    if number <= 0 or not number.is_integer():
        return None
    return int(number)


def normalize_intervals(raw: Iterable[Any]) -> List[int]:
    """Normalize raw values to a strictly ascending list of unique positive ints."""
    cleaned = set()
    for value in raw or []:
        number = _as_positive_int(value)
        if number is None:
            logger.debug("Dropping unusable interval value %r", value)
            continue
        cleaned.add(number)
    return sorted(cleaned)


@dataclass(frozen=True)
class IntervalLadder:
    """Immutable, validated interval ladder.

    ``intervals[0]`` is the reset interval used after any incorrect answer and
    ``intervals[-1]`` is the mastered interval.
    """

    intervals: Tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.intervals) < MIN_LADDER_LENGTH:
            raise InvalidConfiguration(
                f"Interval ladder needs at least {MIN_LADDER_LENGTH} values, got {list(self.intervals)}"
            )
        if list(self.intervals) != normalize_intervals(self.intervals):
            raise InvalidConfiguration(
                f"Interval ladder must be ascending unique positive integers, got {list(self.intervals)}"
            )

    @classmethod
    def from_raw(cls, raw: Iterable[Any]) -> "IntervalLadder":
        """Build a ladder from user-supplied values."""
        return cls(tuple(normalize_intervals(raw)))

    def __len__(self) -> int:
        return len(self.intervals)

    @property
    def last_stage(self) -> int:
        return len(self.intervals) - 1

    def interval_for(self, stage: int) -> int:
        """Days until the next review for a row at ``stage``."""
        if not 0 <= stage <= self.last_stage:
            raise IndexError(f"Stage {stage} is outside the ladder [0, {self.last_stage}]")
        return self.intervals[stage]

    def next_stage(self, stage: int, correct: bool) -> int:
        """Advance one rung on a correct answer (saturating), reset to 0 otherwise."""
        if not correct:
            return 0
        return min(stage + 1, self.last_stage)

    def next_due(self, stage: int, today: date) -> date:
        return today + timedelta(days=self.interval_for(stage))

    def is_mastered(self, stage: int) -> bool:
        return stage == self.last_stage

    def clamp(self, stage: int) -> int:
        """Fit a stage recorded under a longer ladder into this one."""
        return max(0, min(stage, self.last_stage))
