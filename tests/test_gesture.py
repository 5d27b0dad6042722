import pytest

from exam_portal.core.gesture import (
    FrameRect,
    InputDeviceFailure,
    KeyRect,
    PinchSelector,
    Point,
    hovered_key,
    pinch_distance,
    require_input_device,
)

KEYS = [KeyRect("Q", 0, 0, 10, 10), KeyRect("W", 10, 0, 20, 10)]
FRAME = FrameRect(left=100, top=50, width=200, height=100)


def test_hover_edges_are_inclusive_and_first_match_wins():
    assert hovered_key(Point(10, 5), KEYS).label == "Q"
    assert hovered_key(Point(15, 5), KEYS).label == "W"
    assert hovered_key(Point(25, 5), KEYS) is None


def test_frame_maps_normalised_point_to_page():
    assert FRAME.to_page(Point(0.5, 0.5)) == Point(200, 100)


def test_pinch_distance():
    assert pinch_distance(Point(0, 0), Point(0.03, 0.04)) == pytest.approx(0.05)


def test_open_hand_does_not_select():
    selector = PinchSelector()
    keys = [KeyRect("A", 190, 90, 210, 110)]
    assert selector.process_frame(Point(0.5, 0.5), Point(0.7, 0.5), FRAME, keys, 0) is None


def test_pinch_outside_keys_does_not_select():
    selector = PinchSelector()
    keys = [KeyRect("A", 0, 0, 10, 10)]
    assert selector.process_frame(Point(0.5, 0.5), Point(0.5, 0.5), FRAME, keys, 0) is None


def test_cooldown_between_selections():
    selector = PinchSelector(cooldown_ms=600)
    keys = [KeyRect("A", 190, 90, 210, 110)]
    pinch = (Point(0.5, 0.5), Point(0.51, 0.5), FRAME, keys)
    assert selector.process_frame(*pinch, 5000) == "A"
    assert selector.process_frame(*pinch, 5600) is None
    assert selector.process_frame(*pinch, 5601) == "A"


def test_unavailable_device_raises_with_reason():
    require_input_device(True, "ignored")
    with pytest.raises(InputDeviceFailure, match="NotAllowedError"):
        require_input_device(False, "NotAllowedError")
