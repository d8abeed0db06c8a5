"""Rich Live dashboard, the lightweight alternative to the Textual TUI.

Used with :class:`rich.live.Live`; every ``update()`` swaps in the latest
snapshot and asks the live display to refresh.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.console import Group
from rich.text import Text

from tramwatch.output.rich_output import build_fleet_table

if TYPE_CHECKING:
    from rich.console import RenderableType
    from rich.live import Live

    from tramwatch.fleet.state import FleetSnapshot


class FleetDashboard:
    """Renderable showing the whole fleet plus feed status."""

    def __init__(self, address: str = "") -> None:
        self._address = address
        self._snapshot: FleetSnapshot | None = None
        self._live: Live | None = None
        self._started_at = datetime.now(tz=UTC)
        self._update_count = 0

    @property
    def snapshot(self) -> FleetSnapshot | None:
        return self._snapshot

    @property
    def update_count(self) -> int:
        return self._update_count

    def set_live(self, live: Live) -> None:
        self._live = live

    def update(self, snapshot: FleetSnapshot) -> None:
        self._snapshot = snapshot
        self._update_count += 1
        if self._live is not None:
            self._live.refresh()

    async def on_snapshot(self, snapshot: FleetSnapshot) -> None:
        """Snapshot-sink adapter for :class:`~tramwatch.stream.fanout.SnapshotFanout`."""
        self.update(snapshot)

    def _status_line(self) -> Text:
        uptime = int((datetime.now(tz=UTC) - self._started_at).total_seconds())
        minutes, seconds = divmod(uptime, 60)
        hours, minutes = divmod(minutes, 60)
        trams = len(self._snapshot) if self._snapshot is not None else 0
        messages = self._snapshot.sequence if self._snapshot is not None else 0
        source = self._address or "feed"
        state = "live" if self._snapshot is not None else "waiting"
        return Text(
            f"{source} [{state}]  Trams: {trams}  Messages: {messages:,}  "
            f"Up: {hours:02d}:{minutes:02d}:{seconds:02d}",
            style="dim",
        )

    def __rich__(self) -> RenderableType:
        if self._snapshot is None:
            return Group(self._status_line(), Text("Waiting for the first message...", style="dim"))
        return Group(self._status_line(), build_fleet_table(self._snapshot))
