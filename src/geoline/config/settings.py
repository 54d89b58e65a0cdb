# src/geoline/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/geoline/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `GEOLINE_LOG_LEVEL`, `GEOLINE_DISTANCE_UNIT`)
- an external YAML file via `GEOLINE_CONFIG_PATH`

Design rule:
- Tuning knobs (styles, thresholds, latency budget) live in YAML, not hard-coded in engine logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal
from geoline.core.env import load_dotenv_if_present
from geoline.domain.models import LineStyle

import yaml
from pydantic import BaseModel, Field


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `geoline.config`."""
    text = resources.files("geoline.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "geoline"
    log_level: str = "INFO"


class GeodesySettings(BaseModel):
    zero_length_threshold_m: float = Field(1.0, ge=0)


class DisplaySettings(BaseModel):
    unit: Literal["meters", "kilometers", "miles", "feet"] = "kilometers"
    precision: int = Field(1, ge=0, le=6)
    meters_to_kilometers: float = Field(1000.0, gt=0)
    high_precision_meters: float = Field(10.0, ge=0)


class SyncSettings(BaseModel):
    latency_budget_ms: float = Field(100.0, gt=0)
    track_latency: bool = True


class MapSettings(BaseModel):
    default_center_lat: float = Field(0.0, ge=-90, le=90)
    default_center_lng: float = Field(0.0, ge=-180, le=180)


class TargetSettings(BaseModel):
    initial_bearing_deg: float = Field(0.0, ge=0, lt=360)
    rotation_step_deg: float = Field(15.0, gt=0, le=180)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    geodesy: GeodesySettings = Field(default_factory=GeodesySettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    line_style: LineStyle = Field(default_factory=LineStyle)
    preview_style: LineStyle = Field(
        default_factory=lambda: LineStyle(dash_array="5, 5", opacity=0.5)
    )
    map: MapSettings = Field(default_factory=MapSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    target: TargetSettings = Field(default_factory=TargetSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("GEOLINE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    unit = os.getenv("GEOLINE_DISTANCE_UNIT")
    if unit:
        data.setdefault("display", {})["unit"] = unit.strip().lower()

    budget = os.getenv("GEOLINE_SYNC_LATENCY_BUDGET_MS")
    if budget:
        data.setdefault("sync", {})["latency_budget_ms"] = float(budget)

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("GEOLINE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
