"""Service for recording one graded answer."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from vocabsrs.clock import Clock
from vocabsrs.models.review_models import (
    ALL_SKILLS,
    ItemRecord,
    ItemStatus,
    ProgressKey,
    ProgressRecord,
    Skill,
)
from vocabsrs.monitoring import answers_recorded, response_time
from vocabsrs.services.attempt_log import AttemptLog
from vocabsrs.services.progress_service import ProgressService
from vocabsrs.services.settings_service import SettingsService
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


def derive_status(mastered_a: bool, mastered_b: bool, mastered_c: bool) -> ItemStatus:
    """Overall item status by fixed priority: all, then A, then C, then B."""
    if mastered_a and mastered_b and mastered_c:
        return ItemStatus.MASTER
    if mastered_a:
        return ItemStatus.READABLE
    if mastered_c:
        return ItemStatus.LISTENABLE
    if mastered_b:
        return ItemStatus.SPEAKABLE
    return ItemStatus.NOT_YET


class AnswerRecorder:
    """Service for applying graded answers to progress, attempts and item status."""

    def __init__(
        self,
        store: ReviewStore,
        clock: Clock,
        progress_service: ProgressService,
        attempt_log: AttemptLog,
        settings_service: SettingsService,
    ):
        """Initialize the service with a store and its collaborators."""
        self.store = store
        self.clock = clock
        self.progress_service = progress_service
        self.attempt_log = attempt_log
        self.settings_service = settings_service
        # One lock per item: covers its (item, skill) keys and the cross-skill flag
        self._locks: Dict[int, asyncio.Lock] = {}
        self._lock_users: Dict[int, int] = {}

    @asynccontextmanager
    async def _item_lock(self, item_id: int) -> AsyncIterator[None]:
        """Hold the item's lock; it is dropped once nobody holds or waits for it."""
        lock = self._locks.setdefault(item_id, asyncio.Lock())
        self._lock_users[item_id] = self._lock_users.get(item_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[item_id] -= 1
            if not self._lock_users[item_id]:
                del self._lock_users[item_id]
                del self._locks[item_id]

    async def record_answer(
        self,
        item: ItemRecord,
        skill: Skill,
        correct: bool,
        elapsed_ms: int = 0,
    ) -> ProgressRecord:
        """Apply one answer and return the updated progress row.

        Progress update, attempt append, status update and complete-mastery
        propagation are committed together or not at all.
        """
        ladder = await self.settings_service.get_ladder()
        key = ProgressKey(item.id, skill)

        async with self._item_lock(item.id):
            today = self.clock.today()
            async with self.store.transaction():
                rows = await self.progress_service.get_skill_rows(item.id, today)
                current = rows[skill]

                stage = current.stage
                if stage > ladder.last_stage or stage < 0:
                    logger.warning(
                        "Stage %d of item %s skill %s does not fit the ladder, clamping",
                        stage,
                        item.id,
                        skill.value,
                    )
                    stage = ladder.clamp(stage)

                current.stage = ladder.next_stage(stage, correct)
                current.next_due = ladder.next_due(current.stage, today)
                if correct:
                    current.correct_count += 1
                else:
                    current.wrong_count += 1
                current.mastered = ladder.is_mastered(current.stage)
                await self.store.put_progress(current)

                await self.attempt_log.append(item.id, skill, correct, elapsed_ms)

                mastery = {s: rows[s].mastered for s in ALL_SKILLS}
                status = derive_status(mastery[Skill.A], mastery[Skill.B], mastery[Skill.C])
                await self._update_status(item.id, status)

                if all(mastery.values()) and not all(rows[s].complete_master for s in ALL_SKILLS):
                    for row in rows.values():
                        row.complete_master = True
                        await self.store.put_progress(row)
                    logger.info("Item %s reached complete mastery", item.id)

        item.status = status
        answers_recorded.labels(skill=skill.value, result="correct" if correct else "wrong").inc()
        response_time.labels(skill=skill.value).observe(max(0, elapsed_ms or 0) / 1000)
        logger.debug(
            "Recorded %s answer for item %s skill %s: stage %d, next due %s",
            "correct" if correct else "wrong",
            key.item_id,
            key.skill.value,
            current.stage,
            current.next_due.isoformat(),
        )
        return current

    async def _update_status(self, item_id: int, status: ItemStatus) -> None:
        """Write the item's status only if it changed."""
        stored = await self.store.get_item(item_id)
        if stored is None:
            logger.warning("Item %s no longer exists, status not updated", item_id)
            return
        if stored.status != status:
            await self.store.set_item_status(item_id, status)
            logger.info("Item %s status: %s -> %s", item_id, stored.status.value, status.value)
