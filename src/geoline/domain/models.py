"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- engine state (`Line`, owned by exactly one `LineEngine`)
- transient creation state (`PreviewLine`)
- renderer input (`LineEvent`, `LineView`)
- diagnostics (`SyncMetrics`)

`Line` and friends are frozen: engines publish new snapshots on every mutation,
so nothing outside the owning engine can change a line in place.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from geoline.core.geo import Coordinate

Endpoint = Literal["start", "end"]


class LineSide(str, Enum):
    """Which map a line lives on.

    The source (left) map measures distance; the target (right) map receives it.
    """

    SOURCE = "source"
    TARGET = "target"

    @classmethod
    def parse(cls, value: "LineSide | str") -> "LineSide":
        if isinstance(value, LineSide):
            return value
        key = str(value).strip().lower()
        aliases = {"left": cls.SOURCE, "right": cls.TARGET}
        if key in aliases:
            return aliases[key]
        return cls(key)


class LineStyle(BaseModel):
    """Presentation-only styling, passed through to the renderer."""

    model_config = ConfigDict(frozen=True)

    color: str = "#FF0000"
    weight: float = Field(3, gt=0)
    opacity: float = Field(0.8, ge=0, le=1)
    dash_array: str | None = None
    endpoint_radius: float = Field(8, gt=0)
    endpoint_fill_color: str = "#FF0000"
    endpoint_border_color: str = "#FFFFFF"
    endpoint_border_weight: float = Field(2, ge=0)


class Line(BaseModel):
    """One measurement line on one side."""

    model_config = ConfigDict(frozen=True)

    id: str
    side: LineSide
    start: Coordinate
    end: Coordinate
    distance_m: float = Field(..., ge=0)
    bearing_deg: float | None = Field(default=None, ge=0, lt=360)
    distance_display: str = ""
    style: LineStyle = Field(default_factory=LineStyle)

    def is_zero_length(self, threshold_m: float = 1.0) -> bool:
        return self.distance_m < threshold_m


class PreviewLine(BaseModel):
    """Advisory line shown while the creation protocol waits for the second click."""

    model_config = ConfigDict(frozen=True)

    side: LineSide
    start: Coordinate
    end: Coordinate
    distance_m: float = Field(..., ge=0)
    distance_display: str = ""
    style: LineStyle = Field(default_factory=LineStyle)


class LineEvent(BaseModel):
    """Closed set of renderer notifications."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["drawn", "erased", "preview", "preview_erased"]
    side: LineSide
    line: Line | None = None
    preview: PreviewLine | None = None


class LineView(BaseModel):
    """Everything a renderer needs to draw one line: path, two markers, an oriented end marker."""

    model_config = ConfigDict(frozen=True)

    line_id: str
    side: LineSide
    path: tuple[Coordinate, Coordinate]
    start_marker: Coordinate
    end_marker: Coordinate
    end_marker_rotation_deg: float = Field(..., ge=0, lt=360)
    distance_m: float
    distance_display: str
    bearing_deg: float | None = None
    zero_length: bool = False
    outside_viewport: bool = False
    style: LineStyle


class SyncMetrics(BaseModel):
    """Latency and last-value diagnostics for source -> target propagation."""

    last_latency_ms: float = 0.0
    last_synced_distance_m: float | None = None
    last_sync_at: datetime | None = None
    sync_count: int = 0
    latency_budget_ms: float = 100.0
    within_budget: bool = True
