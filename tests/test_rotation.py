import pytest

from geoline.config.settings import get_settings
from geoline.core.geo import Coordinate, haversine_m
from geoline.engine.line_engine import LineEngine
from geoline.engine.ports import StaticMapSurface
from geoline.engine.rotation import RotationGesture, bearing_from_pointer


def _target_with_line(distance_m: float = 100_000) -> LineEngine:
    engine = LineEngine("right", surface=StaticMapSurface(center=Coordinate(0, 0)), settings=get_settings())
    engine.sync_distance(distance_m)
    return engine


def test_bearing_from_pointer_quadrants():
    anchor = Coordinate(0, 0)
    assert bearing_from_pointer(anchor, Coordinate(1, 0)) == pytest.approx(0)
    assert bearing_from_pointer(anchor, Coordinate(0, 1)) == pytest.approx(90)
    assert bearing_from_pointer(anchor, Coordinate(-1, 0)) == pytest.approx(180)
    assert bearing_from_pointer(anchor, Coordinate(0, -1)) == pytest.approx(270)
    assert bearing_from_pointer(anchor, anchor) == 0.0


def test_gesture_rotates_target_line_keeping_length():
    engine = _target_with_line()
    gesture = RotationGesture(engine)

    assert gesture.begin()
    assert gesture.is_rotating
    assert gesture.anchor == Coordinate(0, 0)

    line = gesture.update(Coordinate(0, 1))
    assert line.bearing_deg == pytest.approx(90)
    line = gesture.update(Coordinate(-1, 0))
    assert line.bearing_deg == pytest.approx(180)
    assert haversine_m(line.start, line.end) == pytest.approx(100_000, abs=1.0)

    assert gesture.end() == pytest.approx(180)
    assert not gesture.is_rotating
    assert gesture.update(Coordinate(0, 1)) is None


def test_cancel_restores_initial_bearing():
    engine = _target_with_line()
    gesture = RotationGesture(engine)
    gesture.begin()
    gesture.update(Coordinate(0, -1))
    gesture.cancel()

    assert engine.line.bearing_deg == 0.0
    assert not gesture.is_rotating


def test_gesture_refuses_source_and_zero_length_lines():
    source = LineEngine("left", settings=get_settings())
    source.create_line(Coordinate(0, 0), Coordinate(1, 1))
    assert not RotationGesture(source).begin()

    zero = _target_with_line(0.0)
    assert not RotationGesture(zero).begin()
