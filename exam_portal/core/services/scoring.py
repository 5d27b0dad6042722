"""Score computation against the question set's answer key."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from exam_portal.core.models import Question
from exam_portal.core.services.answer_store import answer_key


def normalize_answer(value: str | None) -> str:
    return (value or "").strip().lower()


def is_correct(question: Question, answer: str | None) -> bool:
    correct = normalize_answer(question.correct_answer)
    # An empty key would otherwise match every unanswered question.
    return bool(correct) and normalize_answer(answer) == correct


def compute_score(questions: Sequence[Question], answers: Mapping[str, str]) -> int:
    """Count positions whose answer matches the key, case- and whitespace-insensitively."""
    return sum(
        1
        for position, question in enumerate(questions, start=1)
        if is_correct(question, answers.get(answer_key(position)))
    )
