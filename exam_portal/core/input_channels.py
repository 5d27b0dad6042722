"""Input adapters that turn key activations into answer edits.

Every channel writes the full resulting string through a ``set_answer``
callback, so the answer store never needs to know which device typed.
"""

from __future__ import annotations

from typing import Callable, Protocol

from exam_portal.constants.exam_constants import KEY_BACKSPACE, KEY_CLEAR, KEY_SPACE


class AnswerInputChannel(Protocol):
    def activate_key(self, label: str) -> None: ...


def apply_key(current: str, label: str) -> str:
    """Return ``current`` edited by one key activation."""
    if label == KEY_SPACE:
        return current + " "
    if label == KEY_BACKSPACE:
        return current[:-1]
    if label == KEY_CLEAR:
        return ""
    return current + label


class _CursorChannel:
    def __init__(
        self,
        current_position: Callable[[], int | None],
        get_answer: Callable[[int], str],
        set_answer: Callable[[int, str], None],
    ) -> None:
        self._current_position = current_position
        self._get_answer = get_answer
        self._set_answer = set_answer

    def activate_key(self, label: str) -> None:
        position = self._current_position()
        if position is None:
            return
        self._set_answer(position, apply_key(self._get_answer(position), label))


class KeyboardChannel(_CursorChannel):
    """Physical keyboard key presses on the question under the cursor."""


class GestureKeyboardChannel(_CursorChannel):
    """On-screen keyboard driven by pinch gestures."""
