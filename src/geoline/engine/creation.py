"""
Two-click line creation.

State machine (per side):

    INACTIVE --activate--> AWAITING_FIRST_CLICK --click--> AWAITING_SECOND_CLICK
    AWAITING_SECOND_CLICK --click--> COMPLETE --(immediately)--> INACTIVE
    any --deactivate--> INACTIVE

While awaiting the second click, pointer moves update a transient `PreviewLine`.
The preview is advisory: it is never handed to the `LineEngine`, so the
single-line invariant is untouched and cancelling never commits a partial line.
Creation is single-shot; re-activation is an explicit call.
"""

from __future__ import annotations

import logging
from enum import Enum

from geoline.config.settings import Settings, get_settings
from geoline.core.geo import Coordinate, haversine_m
from geoline.core.units import format_distance
from geoline.domain.models import Line, LineEvent, PreviewLine
from geoline.engine.line_engine import LineEngine, sanitize_coordinate
from geoline.engine.ports import LineRenderer, NullRenderer

logger = logging.getLogger(__name__)


class CreationState(str, Enum):
    INACTIVE = "inactive"
    AWAITING_FIRST_CLICK = "awaiting_first_click"
    AWAITING_SECOND_CLICK = "awaiting_second_click"
    COMPLETE = "complete"


class CreationProtocol:
    def __init__(
        self,
        engine: LineEngine,
        *,
        renderer: LineRenderer | None = None,
        settings: Settings | None = None,
    ):
        self._engine = engine
        self._renderer: LineRenderer = renderer or NullRenderer()
        self._settings = settings or get_settings()
        self._state = CreationState.INACTIVE
        self._first: Coordinate | None = None
        self._preview: PreviewLine | None = None

    @property
    def state(self) -> CreationState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not CreationState.INACTIVE

    @property
    def is_awaiting_second_click(self) -> bool:
        return self._state is CreationState.AWAITING_SECOND_CLICK

    @property
    def first_click(self) -> Coordinate | None:
        return self._first

    @property
    def preview(self) -> PreviewLine | None:
        return self._preview

    def activate(self) -> None:
        """Start listening for clicks; any half-finished attempt is discarded."""
        self._discard_pending()
        self._state = CreationState.AWAITING_FIRST_CLICK

    def deactivate(self) -> None:
        """Return to INACTIVE from any state without committing anything."""
        self._discard_pending()
        self._state = CreationState.INACTIVE

    def handle_click(self, point: Coordinate) -> Line | None:
        """Feed a click; returns the created line on the second click."""
        if self._state is CreationState.AWAITING_FIRST_CLICK:
            # The anchor is clamped here; the engine re-checks it on commit.
            first = sanitize_coordinate(point, label="first click", side=self._engine.side)
            self._first = first
            self._state = CreationState.AWAITING_SECOND_CLICK
            # Zero-length preview so the renderer can show the anchor right away.
            self._set_preview(first, first)
            return None

        if self._state is CreationState.AWAITING_SECOND_CLICK and self._first is not None:
            first = self._first
            # Preview goes away before the real line is drawn, never after.
            self._discard_pending()
            self._state = CreationState.COMPLETE
            # Back to INACTIVE even if the engine raises: creation is single-shot.
            try:
                line = self._engine.create_line(first, point)
            finally:
                self._state = CreationState.INACTIVE
            logger.info("Created %s line: %s", line.side.value, line.distance_display)
            return line

        return None

    def handle_pointer_move(self, point: Coordinate) -> PreviewLine | None:
        first = self._first
        if self._state is not CreationState.AWAITING_SECOND_CLICK or first is None:
            return None
        end = sanitize_coordinate(point, label="preview", side=self._engine.side)
        return self._set_preview(first, end)

    def _set_preview(self, first: Coordinate, end: Coordinate) -> PreviewLine:
        # Previews use the same unit settings as committed lines so the label
        # does not jump when the second click lands.
        display = self._settings.display
        distance = haversine_m(first, end)
        self._preview = PreviewLine(
            side=self._engine.side,
            start=first,
            end=end,
            distance_m=distance,
            distance_display=format_distance(
                distance,
                display.unit,
                display.precision,
                meters_to_kilometers=display.meters_to_kilometers,
                high_precision_meters=display.high_precision_meters,
            ),
            style=self._settings.preview_style,
        )
        self._renderer.render(LineEvent(kind="preview", side=self._engine.side, preview=self._preview))
        return self._preview

    def _discard_pending(self) -> None:
        had_preview = self._preview is not None
        self._first = None
        self._preview = None
        if had_preview:
            self._renderer.render(LineEvent(kind="preview_erased", side=self._engine.side))
