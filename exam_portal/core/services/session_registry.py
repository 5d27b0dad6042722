"""Service owning the live exam sessions hosted by this process."""

from __future__ import annotations

import logging
from threading import Lock
import time
from typing import Any, Callable

from exam_portal.constants.exam_constants import EXAM_DURATION_SECONDS, SESSION_RETENTION_SECONDS
from exam_portal.core.models import SessionContext
from exam_portal.core.services.countdown_timer import TickScheduler
from exam_portal.core.services.exam_session import ExamSession, SubmissionFailure
from exam_portal.core.services.question_loader import QuestionLoader
from exam_portal.storage.exam_storage import ExamStorage, StorageError

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """Raised when a session id is unknown, closed or expired."""


class StorageSubmitGateway:
    """Adapts ``ExamStorage.insert_submission`` to the session's submit contract."""

    def __init__(self, storage: ExamStorage) -> None:
        self._storage = storage

    def __call__(self, document: dict[str, Any]) -> dict[str, Any]:
        try:
            self._storage.insert_submission(document)
        except StorageError as exc:
            raise SubmissionFailure(str(exc)) from exc
        return {"success": True}


class SessionRegistry:
    """Creates, looks up and closes exam sessions.

    Sessions that reached a terminal state (submitted, load failed, no
    questions) stay readable for ``retention_seconds`` so the page can show
    the final status, then are dropped on the next ``open_session``.
    """

    def __init__(
        self,
        storage: ExamStorage,
        duration_seconds: int = EXAM_DURATION_SECONDS,
        scheduler: TickScheduler | None = None,
        retention_seconds: float = SESSION_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = Lock()
        self._storage = storage
        self._duration = duration_seconds
        self._scheduler = scheduler
        self._retention = retention_seconds
        self._clock = clock
        self._sessions: dict[str, ExamSession] = {}

    def open_session(self, context: SessionContext) -> ExamSession:
        self.evict_finished()
        session = ExamSession(
            context=context,
            loader=QuestionLoader(self._storage.fetch_questions),
            submit_exam=StorageSubmitGateway(self._storage),
            duration_seconds=self._duration,
            scheduler=self._scheduler,
            clock=self._clock,
        )
        session.start()
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> ExamSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def close_session(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.close()
        logger.info("Session %s closed", session_id)

    def evict_finished(self) -> int:
        """Drop terminal sessions older than the retention window."""
        cutoff = self._clock() - self._retention
        with self._lock:
            sessions = list(self._sessions.values())
        expired = [
            session
            for session in sessions
            if session.finished_at is not None and session.finished_at <= cutoff
        ]
        if not expired:
            return 0
        with self._lock:
            for session in expired:
                self._sessions.pop(session.session_id, None)
        for session in expired:
            session.close()
        logger.info("Evicted %d finished session(s)", len(expired))
        return len(expired)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)
