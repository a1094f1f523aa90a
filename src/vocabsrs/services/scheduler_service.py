"""Service for finding the (item, skill) pairs due for review."""
import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from vocabsrs.clock import Clock
from vocabsrs.config import settings
from vocabsrs.models.review_models import (
    ALL_SKILLS,
    ItemRecord,
    ProgressKey,
    ProgressRecord,
    QueueEntry,
    Skill,
)
from vocabsrs.monitoring import due_queue_size
from vocabsrs.services.progress_service import ProgressService
from vocabsrs.services.settings_service import SettingsService
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


def is_due(progress: ProgressRecord, today: date) -> bool:
    """Membership test shared by building and counting the queue."""
    return progress.next_due <= today


class SchedulerService:
    """Service for building the bounded review queue."""

    def __init__(
        self,
        store: ReviewStore,
        clock: Clock,
        progress_service: ProgressService,
        settings_service: SettingsService,
    ):
        """Initialize the service with a store and its collaborators."""
        self.store = store
        self.clock = clock
        self.progress_service = progress_service
        self.settings_service = settings_service

    async def _items(self, items: Optional[Iterable[ItemRecord]]) -> List[ItemRecord]:
        return list(items) if items is not None else await self.store.list_items()

    async def build_due_queue(
        self,
        items: Optional[Iterable[ItemRecord]] = None,
        skills: Sequence[Skill] = ALL_SKILLS,
        limit: Optional[int] = None,
    ) -> List[QueueEntry]:
        """Due entries, most recently created item first, truncated to ``limit``."""
        # An unusable ladder is rejected before any row is created
        await self.settings_service.get_ladder()
        today = self.clock.today()
        limit = settings.learning.queue_limit if limit is None else limit

        queue = []
        for item in await self._items(items):
            for skill in skills:
                progress = await self.progress_service.get_or_create(ProgressKey(item.id, skill), today)
                if is_due(progress, today):
                    queue.append(QueueEntry(item=item, skill=skill, progress=progress))

        # sorted() is stable, so ties keep insertion order
        queue = sorted(queue, key=lambda entry: entry.item.created_at, reverse=True)
        logger.debug("Due entries: %d, limit: %d", len(queue), limit)
        return queue[:limit]

    async def count_due_queue(
        self,
        items: Optional[Iterable[ItemRecord]] = None,
        skills: Sequence[Skill] = ALL_SKILLS,
    ) -> int:
        """Number of due entries, without limit and without creating rows."""
        await self.settings_service.get_ladder()
        today = self.clock.today()

        count = 0
        for item in await self._items(items):
            for skill in skills:
                progress = await self.progress_service.get_or_default(ProgressKey(item.id, skill), today)
                if is_due(progress, today):
                    count += 1

        due_queue_size.set(count)
        return count
