"""Service for resumable review sessions."""
import logging
from typing import List, Optional, Sequence

from vocabsrs.clock import Clock
from vocabsrs.config import settings
from vocabsrs.errors import MissingItem
from vocabsrs.models.review_models import (
    ALL_SKILLS,
    ProgressKey,
    ProgressRecord,
    QueueEntry,
    ReviewSessionData,
    SessionAnswer,
    SessionSummary,
    Skill,
)
from vocabsrs.monitoring import sessions_started
from vocabsrs.services.answer_recorder import AnswerRecorder
from vocabsrs.services.progress_service import ProgressService
from vocabsrs.services.scheduler_service import SchedulerService
from vocabsrs.services.store import ReviewStore

logger = logging.getLogger(__name__)


def merge_queue(saved: ReviewSessionData, fresh: List[ProgressKey]) -> List[ProgressKey]:
    """Saved queue followed by fresh keys neither queued nor already answered."""
    seen = set(saved.queue) | saved.answered_keys
    merged = list(saved.queue)
    for key in fresh:
        if key not in seen:
            merged.append(key)
            seen.add(key)
    return merged


class SessionService:
    """Service for starting, answering within and finishing review sessions.

    The session is written back after every single answer.
    """

    def __init__(
        self,
        store: ReviewStore,
        clock: Clock,
        scheduler: SchedulerService,
        recorder: AnswerRecorder,
        progress_service: ProgressService,
    ):
        """Initialize the service with a store and its collaborators."""
        self.store = store
        self.clock = clock
        self.scheduler = scheduler
        self.recorder = recorder
        self.progress_service = progress_service

    async def get_session(self, session_id: Optional[str] = None) -> Optional[ReviewSessionData]:
        data = await self.store.get_session(session_id or settings.learning.session_id)
        return ReviewSessionData.from_dict(data) if data else None

    async def _save(self, session: ReviewSessionData, slot: str) -> None:
        session.updated_at = self.clock.now_ms()
        await self.store.put_session(slot, session.to_dict())

    async def start_session(
        self,
        session_id: Optional[str] = None,
        limit: Optional[int] = None,
        skills: Sequence[Skill] = ALL_SKILLS,
    ) -> ReviewSessionData:
        """Resume the saved session merged with newly due entries, or start a new one.

        A saved session whose queue is empty is replaced by a new one.
        """
        slot = session_id or settings.learning.session_id
        fresh = [entry.key for entry in await self.scheduler.build_due_queue(skills=skills, limit=limit)]
        saved = await self.get_session(slot)

        if saved is None or not saved.queue:
            session = ReviewSessionData(id=str(self.clock.now_ms()), queue=fresh, total_count=len(fresh))
            sessions_started.labels(resumed="false").inc()
            logger.info("Started session %s with %d entries", session.id, len(fresh))
        else:
            session = saved
            session.queue = [key for key in merge_queue(saved, fresh) if await self._item_exists(key)]
            session.total_count = len(session.queue) + len(session.answers)
            sessions_started.labels(resumed="true").inc()
            logger.info(
                "Resumed session %s: %d queued, %d answered",
                session.id,
                len(session.queue),
                len(session.answers),
            )

        await self._save(session, slot)
        return session

    async def _item_exists(self, key: ProgressKey) -> bool:
        if await self.store.get_item(key.item_id) is None:
            logger.warning("Dropping session entry of deleted item %s", key.item_id)
            return False
        return True

    async def resolve_queue(self, session: ReviewSessionData) -> List[QueueEntry]:
        """Queue keys with their items and progress rows; deleted items are skipped."""
        today = self.clock.today()
        entries = []
        for key in session.queue:
            item = await self.store.get_item(key.item_id)
            if item is None:
                logger.warning("Skipping session entry of deleted item %s", key.item_id)
                continue
            progress = await self.progress_service.get_or_default(key, today)
            entries.append(QueueEntry(item=item, skill=key.skill, progress=progress))
        return entries

    async def answer(
        self,
        key: ProgressKey,
        correct: bool,
        elapsed_ms: int = 0,
        session_id: Optional[str] = None,
    ) -> ProgressRecord:
        """Record an answer and persist the session immediately."""
        slot = session_id or settings.learning.session_id
        item = await self.store.get_item(key.item_id)
        if item is None:
            raise MissingItem(key.item_id)

        progress = await self.recorder.record_answer(item, key.skill, correct, elapsed_ms)

        session = await self.get_session(slot)
        if session is None:
            session = ReviewSessionData(id=str(self.clock.now_ms()))
        session.queue = [queued for queued in session.queue if queued != key]
        session.answers.append(SessionAnswer(key=key, correct=bool(correct)))
        session.total_count = max(session.total_count, len(session.queue) + len(session.answers))
        await self._save(session, slot)
        return progress

    async def finish(self, session_id: Optional[str] = None) -> SessionSummary:
        """Delete the session and summarize its answers."""
        slot = session_id or settings.learning.session_id
        session = await self.get_session(slot)
        await self.store.delete_session(slot)
        if session is None:
            return SessionSummary(correct=0, wrong=0)

        wrong_keys = [answer.key for answer in session.answers if not answer.correct]
        summary = SessionSummary(
            correct=sum(1 for answer in session.answers if answer.correct),
            wrong=len(wrong_keys),
            wrong_keys=wrong_keys,
        )
        logger.info("Finished session %s: %d correct, %d wrong", session.id, summary.correct, summary.wrong)
        return summary

    async def retry_wrong(self, summary: SessionSummary, session_id: Optional[str] = None) -> ReviewSessionData:
        """Start a new session made of the wrongly answered entries."""
        slot = session_id or settings.learning.session_id
        queue = list(dict.fromkeys(summary.wrong_keys))
        session = ReviewSessionData(id=str(self.clock.now_ms()), queue=queue, total_count=len(queue))
        await self._save(session, slot)
        logger.info("Started retry session %s with %d entries", session.id, len(queue))
        return session
