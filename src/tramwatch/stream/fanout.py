"""Fan-out of fleet snapshots to the display sinks of one session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from tramwatch.fleet.state import FleetSnapshot

logger = logging.getLogger(__name__)


class SnapshotFanout:
    """Hands every snapshot to each named sink in registration order.

    A sink that raises is logged (once per sink with a traceback, then
    at DEBUG) and counted under its name; the other sinks still receive
    the snapshot and the session keeps running.
    """

    def __init__(self) -> None:
        self._sinks: list[tuple[str, Callable[[FleetSnapshot], Awaitable[None]]]] = []
        self._failures: dict[str, int] = {}

    def add_sink(
        self, callback: Callable[[FleetSnapshot], Awaitable[None]], *, name: str | None = None
    ) -> None:
        label = name or getattr(callback, "__qualname__", None) or repr(callback)
        self._sinks.append((label, callback))

    @property
    def sink_count(self) -> int:
        return len(self._sinks)

    @property
    def sink_names(self) -> list[str]:
        return [name for name, _sink in self._sinks]

    @property
    def failures(self) -> dict[str, int]:
        """Failed deliveries per sink name; sinks that never failed are absent."""
        return dict(self._failures)

    @property
    def failure_count(self) -> int:
        return sum(self._failures.values())

    def has_sinks(self) -> bool:
        return bool(self._sinks)

    async def on_snapshot(self, snapshot: FleetSnapshot) -> None:
        for name, sink in self._sinks:
            try:
                await sink(snapshot)
            except Exception:
                first = name not in self._failures
                self._failures[name] = self._failures.get(name, 0) + 1
                if first:
                    logger.warning(
                        "Sink %s failed for snapshot %d", name, snapshot.sequence, exc_info=True
                    )
                else:
                    logger.debug("Sink %s failed again for snapshot %d", name, snapshot.sequence)
