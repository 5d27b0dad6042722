"""Pointer rules for the webcam gesture keyboard.

The hand-landmark model runs in the browser. These helpers take its
normalised fingertip coordinates and decide which on-screen key is hovered
and when a pinch selects it.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Sequence

from exam_portal.constants.exam_constants import PINCH_THRESHOLD, SELECT_COOLDOWN_MS


class InputDeviceFailure(Exception):
    """Raised when the camera or landmark detector is unavailable."""


def require_input_device(available: bool, reason: str) -> None:
    if not available:
        raise InputDeviceFailure(reason)


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class KeyRect:
    """Bounding box of an on-screen key in page coordinates."""

    label: str
    left: float
    top: float
    right: float
    bottom: float

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom


@dataclass(frozen=True, slots=True)
class FrameRect:
    """Where the camera frame sits on the page."""

    left: float
    top: float
    width: float
    height: float

    def to_page(self, normalised: Point) -> Point:
        return Point(
            x=self.left + normalised.x * self.width,
            y=self.top + normalised.y * self.height,
        )


def hovered_key(point: Point, keys: Sequence[KeyRect]) -> KeyRect | None:
    return next((key for key in keys if key.contains(point)), None)


def pinch_distance(index_tip: Point, thumb_tip: Point) -> float:
    return math.hypot(thumb_tip.x - index_tip.x, thumb_tip.y - index_tip.y)


class PinchSelector:
    """Turns a stream of landmark frames into discrete key activations."""

    def __init__(
        self,
        threshold: float = PINCH_THRESHOLD,
        cooldown_ms: int = SELECT_COOLDOWN_MS,
    ) -> None:
        self._threshold = threshold
        self._cooldown_ms = cooldown_ms
        self._last_select_ms: float | None = None

    def process_frame(
        self,
        index_tip: Point,
        thumb_tip: Point,
        frame: FrameRect,
        keys: Sequence[KeyRect],
        timestamp_ms: float,
    ) -> str | None:
        """Return the selected key label for this frame, if any."""
        key = hovered_key(frame.to_page(index_tip), keys)
        if key is None:
            return None
        if pinch_distance(index_tip, thumb_tip) >= self._threshold:
            return None
        if (
            self._last_select_ms is not None
            and timestamp_ms - self._last_select_ms <= self._cooldown_ms
        ):
            return None
        self._last_select_ms = timestamp_ms
        return key.label
