"""Domain models for the exam portal."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Question:
    """Exam question; ``options`` is empty for free-text questions."""

    text: str
    correct_answer: str
    options: dict[str, str] = field(default_factory=dict)

    @property
    def is_free_text(self) -> bool:
        return not self.options

    def to_document(self) -> dict[str, Any]:
        """Return the stored (wire) representation of the question."""
        document: dict[str, Any] = {"question": self.text, "answer": self.correct_answer}
        if self.options:
            document["options"] = dict(self.options)
        return document


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Identity supplied at login and carried opaquely through a session."""

    name: str
    roll_number: str


@dataclass(slots=True)
class SubmissionRecord:
    """Final answers and score for one exam attempt."""

    name: str
    roll_number: str
    answers: dict[str, str]
    score: int
    submission_id: str | None = None
    submitted_at: str | None = None  # Assigned by storage on insert

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "name": self.name,
            "rollNumber": self.roll_number,
            "answers": dict(self.answers),
            "score": self.score,
        }
        if self.submission_id is not None:
            document["submissionId"] = self.submission_id
        if self.submitted_at is not None:
            document["submittedAt"] = self.submitted_at
        return document


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """What a submit attempt reports back to the student."""

    success: bool
    score: int
    total: int
    auto: bool
    message: str
