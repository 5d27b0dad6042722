"""Parsing and validation of uploaded question banks.

Upload format is a JSON array of question objects:

    [
      {
        "question": "2 + 2 = ?",
        "options": {"a": "3", "b": "4", "c": "5", "d": "6"},
        "answer": "b"
      }
    ]

``q`` / ``text`` are accepted in place of ``question`` and ``correctAnswer``
in place of ``answer``. Every record must carry all four options and an
answer label. A bank is accepted or rejected as a whole, so a single bad
record means nothing is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

from exam_portal.constants.exam_constants import OPTION_LABELS
from exam_portal.core.models import Question

_TEXT_KEYS = ("question", "q", "text")
_ANSWER_KEYS = ("answer", "correctAnswer")
MAX_REPORTED_ERRORS = 5


class QuestionBankValidationError(Exception):
    """Raised when an uploaded question bank is malformed."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


@dataclass(frozen=True, slots=True)
class QuestionPreview:
    """Short summary of a question for the admin upload panel."""

    question: str
    answer: str
    options: dict[str, str]


def parse_question_bank(raw: bytes | str) -> list[Question]:
    """Decode and validate an uploaded bank, returning its questions in order."""
    try:
        parsed = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise QuestionBankValidationError(f"Failed to parse JSON: {exc}") from exc
    return validate_question_records(parsed)


def validate_question_records(records: Any) -> list[Question]:
    if not isinstance(records, list):
        raise QuestionBankValidationError("JSON must be an array of question objects.")
    if not records:
        raise QuestionBankValidationError("JSON must be a non-empty array of questions.")

    errors: list[str] = []
    questions: list[Question] = []
    for position, record in enumerate(records, start=1):
        issues = _record_issues(record)
        if issues:
            errors.append(f"Q{position}: {'; '.join(issues)}")
            continue
        questions.append(question_from_document(record))

    if errors:
        reported = errors[:MAX_REPORTED_ERRORS]
        raise QuestionBankValidationError(
            f"{len(errors)} question(s) failed validation: " + " | ".join(reported),
            errors=reported,
        )
    return questions


def question_from_document(document: Any) -> Question:
    """Shape a stored document into a Question.

    Unlike upload validation this accepts free-text questions (no options),
    since stored banks are trusted to have passed validation already.
    """
    if not isinstance(document, dict):
        raise ValueError(f"Question record must be an object, got {type(document).__name__}.")
    text = _first_present(document, _TEXT_KEYS)
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Question text missing.")
    answer = _first_present(document, _ANSWER_KEYS)
    raw_options = document.get("options") or {}
    if not isinstance(raw_options, dict):
        raise ValueError("Question options must be an object.")
    options = {
        label: str(raw_options[label])
        for label in OPTION_LABELS
        if raw_options.get(label) is not None
    }
    return Question(
        text=text.strip(),
        correct_answer="" if answer is None else str(answer),
        options=options,
    )


def preview(questions: list[Question], limit: int = 3) -> list[QuestionPreview]:
    return [
        QuestionPreview(
            question=question.text,
            answer=question.correct_answer or "-",
            options=dict(question.options),
        )
        for question in questions[:limit]
    ]


def _record_issues(record: Any) -> list[str]:
    if not isinstance(record, dict):
        return ["record must be an object"]

    issues: list[str] = []
    text = _first_present(record, _TEXT_KEYS)
    if not isinstance(text, str) or not text.strip():
        issues.append("missing 'question' text")

    options = record.get("options")
    if not isinstance(options, dict):
        issues.append("missing 'options' object")
    else:
        for label in OPTION_LABELS:
            value = options.get(label)
            if value is None or not str(value).strip():
                issues.append(f"option '{label}' is empty")

    answer = _first_present(record, _ANSWER_KEYS)
    if answer is None or str(answer).strip().lower() not in OPTION_LABELS:
        issues.append("answer must be one of a/b/c/d")
    return issues


def _first_present(document: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = document.get(key)
        if value is not None:
            return value
    return None
