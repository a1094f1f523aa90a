"""Service for per (item, skill) progress rows."""
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from vocabsrs.clock import Clock, as_calendar_date
from vocabsrs.errors import InvalidProgress
from vocabsrs.models.review_models import ALL_SKILLS, ProgressKey, ProgressRecord, Skill
from vocabsrs.services.interval_ladder import IntervalLadder
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


def default_progress(key: ProgressKey, today: date) -> ProgressRecord:
    """A fresh row: first rung, due today."""
    return ProgressRecord(item_id=key.item_id, skill=key.skill, stage=0, next_due=today)


def validate_progress_row(
    row: Dict[str, Any], ladder: IntervalLadder, clock: Optional[Clock] = None
) -> ProgressRecord:
    """Turn an imported row into a record, rejecting anything that breaks the invariants."""
    clock = clock or Clock()
    try:
        skill = Skill(row["skill"])
        item_id = row["item_id"]
        stage = int(row.get("stage", 0))
        correct_count = int(row.get("correct_count", 0))
        wrong_count = int(row.get("wrong_count", 0))
        next_due = as_calendar_date(row.get("next_due"), clock.tz) or clock.today()
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidProgress(f"Malformed progress row {row!r}: {e}") from e

    if not 0 <= stage <= ladder.last_stage:
        raise InvalidProgress(
            f"Stage {stage} of item {item_id} skill {skill.value} is outside [0, {ladder.last_stage}]"
        )
    if correct_count < 0 or wrong_count < 0:
        raise InvalidProgress(f"Negative counters for item {item_id} skill {skill.value}")

    return ProgressRecord(
        item_id=item_id,
        skill=skill,
        stage=stage,
        next_due=next_due,
        correct_count=correct_count,
        wrong_count=wrong_count,
        mastered=ladder.is_mastered(stage),
        complete_master=bool(row.get("complete_master", False)),
    )


class ProgressService:
    """Service for reading and lazily creating progress rows."""

    def __init__(self, store: ReviewStore, clock: Clock):
        """Initialize the service with a store and a clock."""
        self.store = store
        self.clock = clock

    async def get_or_default(self, key: ProgressKey, today: Optional[date] = None) -> ProgressRecord:
        """Stored row, or an unsaved default one."""
        progress = await self.store.get_progress(key)
        if progress is None:
            progress = default_progress(key, today or self.clock.today())
        return progress

    async def get_or_create(self, key: ProgressKey, today: Optional[date] = None) -> ProgressRecord:
        """Stored row, creating and saving a default one if missing."""
        progress = await self.store.get_progress(key)
        if progress is None:
            progress = default_progress(key, today or self.clock.today())
            await self.store.put_progress(progress)
            logger.debug("Created progress row for item %s skill %s", key.item_id, key.skill.value)
        return progress

    async def get_skill_rows(self, item_id: int, today: Optional[date] = None) -> Dict[Skill, ProgressRecord]:
        """All three skill rows for an item, defaults for missing ones."""
        return {
            skill: await self.get_or_default(ProgressKey(item_id, skill), today)
            for skill in ALL_SKILLS
        }

    async def import_rows(self, rows: Iterable[Dict[str, Any]], ladder: IntervalLadder) -> List[ProgressRecord]:
        """Validate every row first, then store them; a bad row rejects the whole batch."""
        records = [validate_progress_row(row, ladder, self.clock) for row in rows]
        async with self.store.transaction():
            for record in records:
                await self.store.put_progress(record)
        logger.info("Imported %d progress rows", len(records))
        return records
