"""SQLAlchemy implementation of the review store."""
import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabsrs.errors import StorageFailure
from vocabsrs.models.models import (
    Achievement,
    Attempt,
    Item,
    Progress,
    ReviewSession,
    Setting,
)
from vocabsrs.models.review_models import (
    AchievementRecord,
    AttemptRecord,
    ItemRecord,
    ItemStatus,
    ProgressKey,
    ProgressRecord,
)
from vocabsrs.monitoring import storage_errors
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


def _storage_operation(func):
    """Translate SQLAlchemy errors into StorageFailure, rolling back outside transactions."""

    @functools.wraps(func)
    async def wrapper(self: "SqlAlchemyStore", *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            storage_errors.labels(operation=func.__name__).inc()
            logger.error("Storage error in %s: %s", func.__name__, str(e))
            if not self._in_transaction:
                self.db.rollback()
            raise StorageFailure(f"{func.__name__} failed: {e}") from e

    return wrapper


def _item_to_record(item: Item) -> ItemRecord:
    return ItemRecord(
        id=item.id,
        text=item.text,
        meanings=list(item.meanings or []),
        category=item.category,
        tags=list(item.tags or []),
        example=item.example,
        note=item.note,
        created_at=item.created_at,
        status=item.status,
    )


def _progress_to_record(progress: Progress) -> ProgressRecord:
    return ProgressRecord(
        item_id=progress.item_id,
        skill=progress.skill,
        stage=progress.stage,
        next_due=progress.next_due,
        correct_count=progress.correct_count,
        wrong_count=progress.wrong_count,
        mastered=progress.mastered,
        complete_master=progress.complete_master,
    )


class SqlAlchemyStore(ReviewStore):
    """Store backed by a SQLAlchemy ORM session."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db
        self._in_transaction = False
        self._tx_lock = asyncio.Lock()

    def _commit(self) -> None:
        if not self._in_transaction:
            self.db.commit()

    def _get_progress_row(self, key: ProgressKey) -> Optional[Progress]:
        return (
            self.db.query(Progress)
            .filter(
                and_(
                    Progress.item_id == key.item_id,
                    Progress.skill == key.skill,
                )
            )
            .first()
        )

    @_storage_operation
    async def get_item(self, item_id: int) -> Optional[ItemRecord]:
        item = self.db.query(Item).filter(Item.id == item_id).first()
        return _item_to_record(item) if item else None

    @_storage_operation
    async def list_items(self) -> List[ItemRecord]:
        return [_item_to_record(item) for item in self.db.query(Item).order_by(Item.id).all()]

    @_storage_operation
    async def put_item(self, item: ItemRecord) -> None:
        row = self.db.query(Item).filter(Item.id == item.id).first()
        if row is None:
            row = Item(id=item.id)
            self.db.add(row)
        row.text = item.text
        row.meanings = list(item.meanings)
        row.category = item.category
        row.tags = list(item.tags)
        row.example = item.example
        row.note = item.note
        row.created_at = item.created_at
        row.status = item.status
        self._commit()

    @_storage_operation
    async def set_item_status(self, item_id: int, status: ItemStatus) -> None:
        row = self.db.query(Item).filter(Item.id == item_id).first()
        if row is not None:
            row.status = status
            self._commit()

    @_storage_operation
    async def delete_item(self, item_id: int) -> None:
        self.db.query(Item).filter(Item.id == item_id).delete()
        self._commit()

    @_storage_operation
    async def get_progress(self, key: ProgressKey) -> Optional[ProgressRecord]:
        row = self._get_progress_row(key)
        return _progress_to_record(row) if row else None

    @_storage_operation
    async def put_progress(self, progress: ProgressRecord) -> None:
        row = self._get_progress_row(progress.key)
        if row is None:
            row = Progress(item_id=progress.item_id, skill=progress.skill)
            self.db.add(row)
        row.stage = progress.stage
        row.next_due = progress.next_due
        row.correct_count = progress.correct_count
        row.wrong_count = progress.wrong_count
        row.mastered = progress.mastered
        row.complete_master = progress.complete_master
        # Later lookups in the same transaction must see this row
        self.db.flush()
        self._commit()

    @_storage_operation
    async def list_progress(self) -> List[ProgressRecord]:
        return [_progress_to_record(row) for row in self.db.query(Progress).order_by(Progress.id).all()]

    @_storage_operation
    async def append_attempt(self, attempt: AttemptRecord) -> None:
        self.db.add(
            Attempt(
                item_id=attempt.item_id,
                skill=attempt.skill,
                result=attempt.result,
                ts=attempt.ts,
                elapsed_ms=attempt.elapsed_ms,
            )
        )
        self._commit()

    @_storage_operation
    async def list_attempts(self) -> List[AttemptRecord]:
        return [
            AttemptRecord(
                item_id=row.item_id,
                skill=row.skill,
                result=row.result,
                ts=row.ts,
                elapsed_ms=row.elapsed_ms,
            )
            for row in self.db.query(Attempt).order_by(Attempt.id).all()
        ]

    @_storage_operation
    async def get_settings(self) -> Dict[str, Any]:
        return {row.key: row.value for row in self.db.query(Setting).all()}

    @_storage_operation
    async def put_settings(self, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            row = self.db.query(Setting).filter(Setting.key == key).first()
            if row is None:
                self.db.add(Setting(key=key, value=value))
            else:
                row.value = value
        self._commit()

    @_storage_operation
    async def list_achievements(self) -> List[AchievementRecord]:
        return [
            AchievementRecord(code=row.code, achieved_at=row.achieved_at)
            for row in self.db.query(Achievement).order_by(Achievement.id).all()
        ]

    @_storage_operation
    async def add_achievement(self, achievement: AchievementRecord) -> None:
        exists = self.db.query(Achievement).filter(Achievement.code == achievement.code).first()
        if exists:
            return
        self.db.add(Achievement(code=achievement.code, achieved_at=achievement.achieved_at))
        self._commit()

    @_storage_operation
    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        row = self.db.query(ReviewSession).filter(ReviewSession.id == session_id).first()
        return dict(row.data) if row else None

    @_storage_operation
    async def put_session(self, session_id: str, data: Dict[str, Any]) -> None:
        row = self.db.query(ReviewSession).filter(ReviewSession.id == session_id).first()
        if row is None:
            self.db.add(ReviewSession(id=session_id, data=data))
        else:
            row.data = data
        self._commit()

    @_storage_operation
    async def delete_session(self, session_id: str) -> None:
        self.db.query(ReviewSession).filter(ReviewSession.id == session_id).delete()
        self._commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlAlchemyStore"]:
        async with self._tx_lock:
            self._in_transaction = True
            try:
                yield self
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                storage_errors.labels(operation="commit").inc()
                raise StorageFailure(f"Transaction failed: {e}") from e
            except BaseException:
                self.db.rollback()
                raise
            finally:
                self._in_transaction = False
