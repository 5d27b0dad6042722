"""Service that fetches the question set once at session start."""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Any, Callable

from exam_portal.core.models import Question
from exam_portal.core.question_bank import question_from_document
from exam_portal.storage.exam_storage import StorageError

logger = logging.getLogger(__name__)


class LoadFailure(Exception):
    """Raised when the question set cannot be fetched or is malformed."""


class NoQuestionsAvailable(LoadFailure):
    """Raised when the question bank is reachable but empty."""


class QuestionLoader:
    """Fetches and shapes the question bank. No retries."""

    def __init__(self, fetch_documents: Callable[[], Any]) -> None:
        self._fetch_documents = fetch_documents

    def load(self) -> tuple[Question, ...]:
        try:
            payload = self._fetch_documents()
        except StorageError as exc:
            logger.error("Question set unavailable: %s", exc)
            raise LoadFailure(str(exc)) from exc

        if isinstance(payload, (str, bytes)) or not isinstance(payload, Sequence):
            raise LoadFailure(
                f"Question source returned {type(payload).__name__}, expected a sequence."
            )
        if not payload:
            raise NoQuestionsAvailable("The question bank is empty.")

        try:
            return tuple(question_from_document(document) for document in payload)
        except ValueError as exc:
            raise LoadFailure(f"Malformed question record: {exc}") from exc
