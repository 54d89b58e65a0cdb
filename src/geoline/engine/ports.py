"""
Collaborator ports.

The engine never talks to a mapping library directly. It needs two things:
- a `MapSurface` that can report its viewport (center + bounds), and
- a `LineRenderer` that draws whatever `LineEvent` it receives.

Both are structural protocols so tests and embedding apps can pass plain objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from geoline.core.geo import Bounds, Coordinate
from geoline.domain.models import LineEvent


class MapSurface(Protocol):
    def get_center(self) -> Coordinate | None:
        """Current viewport center, or None while the map is not ready."""

    def get_bounds(self) -> Bounds | None:
        """Current viewport bounds, or None while the map is not ready."""


class LineRenderer(Protocol):
    def render(self, event: LineEvent) -> None: ...


class NullRenderer:
    """Renderer that drops every event (headless use)."""

    def render(self, event: LineEvent) -> None:
        return None


@dataclass
class RecordingRenderer:
    """Renderer that keeps every event it receives, in order."""

    events: list[LineEvent] = field(default_factory=list)

    def render(self, event: LineEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind for e in self.events]


@dataclass
class StaticMapSurface:
    """A map surface with a settable viewport.

    `center=None` models a map that has not finished initializing.
    """

    center: Coordinate | None = None
    bounds: Bounds | None = None

    def get_center(self) -> Coordinate | None:
        return self.center

    def get_bounds(self) -> Bounds | None:
        return self.bounds

    def move_to(self, center: Coordinate, bounds: Bounds | None = None) -> None:
        self.center = center
        self.bounds = bounds
