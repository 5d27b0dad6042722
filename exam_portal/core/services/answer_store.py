"""Per-session mapping from question position to the current answer."""

from __future__ import annotations

from exam_portal.constants.exam_constants import ANSWER_KEY_PREFIX


def answer_key(position: int) -> str:
    """Return the stable key for a 1-based question position (``Q1``, ``Q2``...)."""
    return f"{ANSWER_KEY_PREFIX}{position}"


class AnswerStore:
    """Last-write-wins answer map shared by every input channel."""

    def __init__(self) -> None:
        self._answers: dict[str, str] = {}

    def set_answer(self, position: int, value: str) -> None:
        if position < 1:
            raise ValueError(f"Answer positions are 1-based, got {position}.")
        self._answers[answer_key(position)] = value

    def get_answer(self, position: int) -> str:
        return self._answers.get(answer_key(position), "")

    def snapshot(self) -> dict[str, str]:
        return dict(self._answers)

    def __len__(self) -> int:
        return len(self._answers)
