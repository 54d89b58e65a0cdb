from geoline.core.units import format_distance


def test_metric_formatting_switches_by_magnitude():
    assert format_distance(0) == "0 m"
    assert format_distance(0.005) == "0 m"
    assert format_distance(5.254) == "5.25 m"
    assert format_distance(523.4) == "523 m"
    assert format_distance(3_935_746.0) == "3935.7 km"
    assert format_distance(3_935_746.0, "meters", 2) == "3935.75 km"


def test_imperial_formatting():
    # 100 m is ~0.062 mi, so it falls back to feet.
    assert format_distance(100, "miles") == "328 ft"
    assert format_distance(16_093.44, "miles") == "10.0 mi"
    assert format_distance(10, "feet") == "32.8 ft"


def test_invalid_values_render_as_zero():
    assert format_distance(float("nan")) == "0 m"
    assert format_distance(-5) == "0 m"


def test_thresholds_are_configurable():
    assert format_distance(500, meters_to_kilometers=100) == "0.5 km"
    assert format_distance(5.0, high_precision_meters=1) == "5 m"
