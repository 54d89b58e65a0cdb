import pytest

from geoline.core.geo import Bounds, Coordinate, haversine_m
from geoline.domain.models import LineSide
from geoline.engine.ports import RecordingRenderer, StaticMapSurface
from geoline.session import DualMapSession

NEW_YORK = Coordinate(lat=40.7128, lng=-74.0060)
LOS_ANGELES = Coordinate(lat=34.0522, lng=-118.2437)


def test_measure_on_source_then_compare_on_target():
    renderer = RecordingRenderer()
    session = DualMapSession(
        target_surface=StaticMapSurface(center=Coordinate(-33.8688, 151.2093)),
        renderer=renderer,
    )

    session.start_measurement()
    session.click(NEW_YORK)
    preview = session.pointer_move(Coordinate(38.9072, -77.0369))
    assert preview is not None
    line = session.click(LOS_ANGELES)

    assert line.side is LineSide.SOURCE
    assert session.target.line.distance_m == line.distance_m
    assert session.metrics().sync_count == 1

    views = session.snapshot()
    source_view = views[LineSide.SOURCE]
    target_view = views[LineSide.TARGET]
    assert source_view.path == (NEW_YORK, LOS_ANGELES)
    assert source_view.bearing_deg is None
    # Source arrow still points along the line.
    assert 0 <= source_view.end_marker_rotation_deg < 360
    assert target_view.end_marker_rotation_deg == 0.0
    assert target_view.distance_display == source_view.distance_display

    kinds = renderer.kinds()
    assert kinds[:2] == ["preview", "preview"]
    assert "drawn" in kinds


def test_rotate_target_uses_configured_step():
    session = DualMapSession()
    session.source.create_line(NEW_YORK, LOS_ANGELES)

    session.rotate_target()
    assert session.target.bearing_deg == pytest.approx(session.settings.target.rotation_step_deg)
    session.rotate_target(-30)
    assert session.target.bearing_deg == pytest.approx(345)

    line = session.target.line
    assert haversine_m(line.start, line.end) == pytest.approx(line.distance_m, abs=1.0)


def test_drag_endpoint_routes_by_side_name():
    session = DualMapSession()
    session.source.create_line(NEW_YORK, LOS_ANGELES)

    session.drag_endpoint("left", "end", Coordinate(41.8781, -87.6298))
    assert session.target.distance_m == session.source.distance_m

    session.drag_endpoint("right", "end", Coordinate(0, 10))
    assert session.target.bearing_deg == pytest.approx(90)
    assert session.target.distance_m == session.source.distance_m


def test_target_map_not_ready_defers_until_map_ready():
    target_surface = StaticMapSurface(center=None)
    session = DualMapSession(target_surface=target_surface)

    session.source.create_line(NEW_YORK, LOS_ANGELES)
    assert session.target.line is None
    assert session.metrics().sync_count == 0

    target_surface.move_to(Coordinate(1, 2))
    line = session.map_ready("right")
    assert line is not None
    assert line.start == Coordinate(1, 2)
    assert line.distance_m == session.source.distance_m
    assert session.metrics().sync_count == 1
    assert session.metrics().last_synced_distance_m == session.source.distance_m
    assert session.map_ready("left") is None


def test_reset_clears_everything():
    session = DualMapSession()
    session.source.create_line(NEW_YORK, LOS_ANGELES)
    session.start_measurement()
    session.click(NEW_YORK)

    session.reset()
    assert session.snapshot() == {LineSide.SOURCE: None, LineSide.TARGET: None}
    assert not session.creation.is_active
    assert session.metrics().sync_count == 0


def test_settings_overrides_apply_per_session():
    session = DualMapSession(settings_overrides={"display": {"unit": "miles"}, "target": {"rotation_step_deg": 5}})
    line = session.source.create_line(NEW_YORK, LOS_ANGELES)
    assert line.distance_display.endswith(" mi")
    assert session.settings.target.rotation_step_deg == 5

    with pytest.raises(ValueError, match=r"geodesy"):
        DualMapSession(settings_overrides={"geodesy": {"zero_length_threshold_m": 100}})


def test_view_flags_lines_outside_viewport():
    surface = StaticMapSurface(center=Coordinate(0, 0), bounds=Bounds(north=5, south=-5, east=5, west=-5))
    session = DualMapSession(source_surface=surface)
    session.source.create_line(NEW_YORK, LOS_ANGELES)

    view = session.view("left")
    assert view.outside_viewport
    assert not view.zero_length
