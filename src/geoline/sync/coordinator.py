"""
Source -> target distance propagation.

The coordinator listens to the source engine's "distance changed" notification
and pushes the new value into the target engine through `sync_distance`. Only
the distance crosses over: the target's bearing and position stay owned by the
target engine, and nothing on the target side is ever read back into the source.

Propagation runs synchronously inside the source mutation's call stack, so once
a source operation returns the target already reflects it. Latency is measured
around the target update (and renderer notification) with `time.perf_counter()`.
Exceeding the budget is logged as a warning, since it means something in the
chain is blocking.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from geoline.config.settings import Settings, get_settings
from geoline.domain.models import Line, SyncMetrics
from geoline.engine.line_engine import LineEngine

logger = logging.getLogger(__name__)


class SyncCoordinator:
    def __init__(
        self,
        source: LineEngine,
        target: LineEngine,
        *,
        settings: Settings | None = None,
    ):
        if source.is_target or not target.is_target:
            raise ValueError("SyncCoordinator needs a source engine and a target engine")
        self._source = source
        self._target = target
        self._settings = settings or get_settings()
        # Budget and tracking are read once; per-session overrides arrive via `settings`.
        self._budget_ms = float(self._settings.sync.latency_budget_ms)
        self._track_latency = bool(self._settings.sync.track_latency)
        self._metrics = SyncMetrics(latency_budget_ms=self._budget_ms)
        # Propagation rides on the source engine's distance notification; the
        # handle lets `detach` stop it without the engine knowing about us.
        self._unsubscribe: Callable[[], None] | None = source.add_distance_listener(self.propagate)

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def propagate(self, distance_m: float) -> None:
        """Push `distance_m` into the target engine and record metrics."""
        started = time.perf_counter()
        line = self._target.sync_distance(distance_m)
        if line is None:
            # Deferred by the target (map not ready): nothing was drawn, so there
            # is no sync to count yet. `flush_pending` records it once it lands.
            logger.debug("Sync of %.1f m deferred by target map.", distance_m)
            return
        self._record(line.distance_m, started)

    def flush_pending(self) -> Line | None:
        """Apply a deferred target sync and record it like a regular propagation."""
        started = time.perf_counter()
        line = self._target.apply_pending()
        if line is not None:
            self._record(line.distance_m, started)
        return line

    def resync(self) -> bool:
        """Push the current source distance again (e.g. after the target map became ready)."""
        line = self._source.line
        if line is None:
            return False
        self.propagate(line.distance_m)
        return True

    def get_metrics(self) -> SyncMetrics:
        return self._metrics

    def reset(self) -> None:
        self._metrics = SyncMetrics(latency_budget_ms=self._budget_ms)

    def _record(self, distance_m: float, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        # With tracking off the sync still counts; only the timing is suppressed.
        latency = elapsed_ms if self._track_latency else 0.0
        within = latency <= self._budget_ms
        # SyncMetrics is frozen: each sync publishes a fresh record.
        self._metrics = SyncMetrics(
            last_latency_ms=latency,
            last_synced_distance_m=float(distance_m),
            last_sync_at=datetime.now(timezone.utc),
            sync_count=self._metrics.sync_count + 1,
            latency_budget_ms=self._budget_ms,
            within_budget=within,
        )
        if not within:
            logger.warning(
                "Sync latency exceeded %.0f ms budget: %.2f ms",
                self._budget_ms,
                latency,
            )

    def detach(self) -> None:
        """Stop listening to the source engine (idempotent)."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
