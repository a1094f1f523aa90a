"""Storage interface consumed by the engine, plus an in-memory implementation."""
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from vocabsrs.models.review_models import (
    AchievementRecord,
    AttemptRecord,
    ItemRecord,
    ItemStatus,
    ProgressKey,
    ProgressRecord,
)

logger = logging.getLogger(__name__)


class ReviewStore(ABC):
    """CRUD-style persistence collaborator, keyed by id.

    Implementations raise ``StorageFailure`` on I/O errors and must make every
    write issued inside ``transaction()`` visible all together or not at all.
    """

    # Items
    @abstractmethod
    async def get_item(self, item_id: int) -> Optional[ItemRecord]:
        raise NotImplementedError

    @abstractmethod
    async def list_items(self) -> List[ItemRecord]:
        """All items in insertion order."""
        raise NotImplementedError

    @abstractmethod
    async def put_item(self, item: ItemRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    async def set_item_status(self, item_id: int, status: ItemStatus) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_item(self, item_id: int) -> None:
        raise NotImplementedError

    # Progress
    @abstractmethod
    async def get_progress(self, key: ProgressKey) -> Optional[ProgressRecord]:
        raise NotImplementedError

    @abstractmethod
    async def put_progress(self, progress: ProgressRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_progress(self) -> List[ProgressRecord]:
        raise NotImplementedError

    # Attempts
    @abstractmethod
    async def append_attempt(self, attempt: AttemptRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_attempts(self) -> List[AttemptRecord]:
        raise NotImplementedError

    # Settings
    @abstractmethod
    async def get_settings(self) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def put_settings(self, values: Dict[str, Any]) -> None:
        raise NotImplementedError

    # Achievements
    @abstractmethod
    async def list_achievements(self) -> List[AchievementRecord]:
        raise NotImplementedError

    @abstractmethod
    async def add_achievement(self, achievement: AchievementRecord) -> None:
        raise NotImplementedError

    # Sessions
    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    async def put_session(self, session_id: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def transaction(self):
        """Async context manager grouping writes into one atomic unit."""
        raise NotImplementedError


class InMemoryStore(ReviewStore):
    """Dictionary-backed store. Records are copied on the way in and out."""

    def __init__(self):
        self.items: Dict[int, ItemRecord] = {}
        self.progress: Dict[ProgressKey, ProgressRecord] = {}
        self.attempts: List[AttemptRecord] = []
        self.settings: Dict[str, Any] = {}
        self.achievements: Dict[str, AchievementRecord] = {}
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self._tx_lock = asyncio.Lock()

    async def get_item(self, item_id: int) -> Optional[ItemRecord]:
        return copy.deepcopy(self.items.get(item_id))

    async def list_items(self) -> List[ItemRecord]:
        return [copy.deepcopy(item) for item in self.items.values()]

    async def put_item(self, item: ItemRecord) -> None:
        self.items[item.id] = copy.deepcopy(item)

    async def set_item_status(self, item_id: int, status: ItemStatus) -> None:
        if item_id in self.items:
            self.items[item_id].status = status

    async def delete_item(self, item_id: int) -> None:
        self.items.pop(item_id, None)

    async def get_progress(self, key: ProgressKey) -> Optional[ProgressRecord]:
        return copy.deepcopy(self.progress.get(key))

    async def put_progress(self, progress: ProgressRecord) -> None:
        self.progress[progress.key] = copy.deepcopy(progress)

    async def list_progress(self) -> List[ProgressRecord]:
        return [copy.deepcopy(progress) for progress in self.progress.values()]

    async def append_attempt(self, attempt: AttemptRecord) -> None:
        self.attempts.append(attempt)

    async def list_attempts(self) -> List[AttemptRecord]:
        return list(self.attempts)

    async def get_settings(self) -> Dict[str, Any]:
        return copy.deepcopy(self.settings)

    async def put_settings(self, values: Dict[str, Any]) -> None:
        self.settings.update(copy.deepcopy(values))

    async def list_achievements(self) -> List[AchievementRecord]:
        return list(self.achievements.values())

    async def add_achievement(self, achievement: AchievementRecord) -> None:
        self.achievements.setdefault(achievement.code, achievement)

    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.sessions.get(session_id))

    async def put_session(self, session_id: str, data: Dict[str, Any]) -> None:
        self.sessions[session_id] = copy.deepcopy(data)

    async def delete_session(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)

    def _snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({
            "items": self.items,
            "progress": self.progress,
            "attempts": self.attempts,
            "achievements": self.achievements,
        })

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryStore"]:
        async with self._tx_lock:
            snapshot = self._snapshot()
            try:
                yield self
            except BaseException:
                logger.debug("Rolling back in-memory transaction")
                self.items = snapshot["items"]
                self.progress = snapshot["progress"]
                self.attempts = snapshot["attempts"]
                self.achievements = snapshot["achievements"]
                raise
