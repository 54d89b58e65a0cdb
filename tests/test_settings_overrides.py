from __future__ import annotations

import logging

import pytest

from geoline.config.overrides import apply_settings_overrides
from geoline.config.settings import _apply_env_overrides, get_settings
from geoline.core.logging import configure_logging


def test_packaged_defaults_load():
    settings = get_settings()

    assert settings.display.unit == "kilometers"
    assert settings.sync.latency_budget_ms == 100
    assert settings.geodesy.zero_length_threshold_m == 1.0
    assert settings.preview_style.dash_array == "5, 5"
    assert settings.line_style.weight == 3


def test_apply_settings_overrides_returns_same_object_when_none():
    settings = get_settings()

    # No overrides is a fast path: the cached model comes back unchanged.
    assert apply_settings_overrides(settings, None) is settings


def test_apply_settings_overrides_can_override_allowed_knobs():
    settings = get_settings()
    out = apply_settings_overrides(settings, {"sync": {"latency_budget_ms": 250}, "line_style": {"color": "#00FF00"}})

    assert out.sync.latency_budget_ms == 250
    assert out.line_style.color == "#00FF00"
    # The shared cached settings must not leak the override.
    assert settings.sync.latency_budget_ms != 250


def test_apply_settings_overrides_rejects_disallowed_keys_with_clear_path():
    settings = get_settings()

    with pytest.raises(ValueError, match=r"sync\.track_latency"):
        apply_settings_overrides(settings, {"sync": {"track_latency": False}})


def test_apply_settings_overrides_rejects_wrong_value_shapes_for_restricted_subtrees():
    settings = get_settings()

    with pytest.raises(ValueError, match=r"settings_overrides key 'sync' must be a mapping"):
        apply_settings_overrides(settings, {"sync": 1})


def test_apply_settings_overrides_revalidates_ranges():
    settings = get_settings()

    with pytest.raises(ValueError):
        apply_settings_overrides(settings, {"line_style": {"opacity": 3}})


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GEOLINE_LOG_LEVEL", "debug")
    monkeypatch.setenv("GEOLINE_DISTANCE_UNIT", " Miles ")
    monkeypatch.setenv("GEOLINE_SYNC_LATENCY_BUDGET_MS", "50")

    data = _apply_env_overrides({"app": {"name": "x"}})
    assert data["app"] == {"name": "x", "log_level": "debug"}
    assert data["display"]["unit"] == "miles"
    assert data["sync"]["latency_budget_ms"] == 50.0


def test_external_config_path(monkeypatch, tmp_path):
    cfg = tmp_path / "geoline.yaml"
    cfg.write_text("display:\n  unit: feet\n", encoding="utf-8")
    monkeypatch.setenv("GEOLINE_CONFIG_PATH", str(cfg))

    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.display.unit == "feet"
        # Missing sections fall back to model defaults.
        assert settings.sync.latency_budget_ms == 100
    finally:
        get_settings.cache_clear()


def test_configure_logging_applies_level():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        settings = get_settings().model_copy(
            update={"app": get_settings().app.model_copy(update={"log_level": "debug"})}
        )
        configure_logging(settings)
        assert logging.getLogger("geoline").level == logging.DEBUG
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        logging.getLogger("geoline").setLevel(logging.NOTSET)
