from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from rich.console import Console

from tramwatch.output.json_output import format_json_error, format_snapshot_line
from tramwatch.output.rich_output import RichOutput
from tramwatch.output.text_output import SEPARATOR, render_text_dashboard

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from tramwatch.fleet.state import FleetSnapshot
    from tramwatch.stream.session import SessionStats

OUTPUT_FORMATS = ("rich", "json", "text", "quiet")


class OutputFormatter:
    """Decides how a feed session is presented.

    The format is *force_format* when given.  Otherwise a TTY on *stream*
    (``sys.stdout`` by default) selects ``"rich"`` and anything else
    selects ``"json"`` so piped output stays machine-readable.

    ``"json"`` and ``"text"`` stream every snapshot to stdout as it is
    published; ``"rich"`` renders the fleet table at the end (or hands off
    to a live view); ``"quiet"`` keeps stdout empty and sends the rare
    status line to stderr.
    """

    def __init__(self, *, stream: Any | None = None, force_format: str | None = None) -> None:
        out = stream or sys.stdout
        if force_format is not None:
            self._format = force_format
        else:
            self._format = "rich" if getattr(out, "isatty", lambda: False)() else "json"
        self._console = Console(stderr=self._format == "quiet")
        self._rich = RichOutput(self._console)

    @property
    def format(self) -> str:  # noqa: A003
        return self._format

    @property
    def console(self) -> Console:
        return self._console

    @property
    def rich(self) -> RichOutput:
        return self._rich

    # ------------------------------------------------------------------
    # Session output
    # ------------------------------------------------------------------

    def snapshot_sink(self) -> Callable[[FleetSnapshot], Awaitable[None]] | None:
        """Return a sink that prints every snapshot, or ``None`` for this format."""
        if self._format == "json":

            async def _jsonl_sink(snapshot: FleetSnapshot) -> None:
                print(format_snapshot_line(snapshot), flush=True)  # noqa: T201

            return _jsonl_sink

        if self._format == "text":

            async def _text_sink(snapshot: FleetSnapshot) -> None:
                print(SEPARATOR)  # noqa: T201
                print(render_text_dashboard(snapshot), end="", flush=True)  # noqa: T201

            return _text_sink

        return None

    def status(self, message: str) -> None:
        """Progress note (connecting, replaying); shown in rich mode only."""
        if self._format == "rich":
            self._rich.info(message)

    def session_failed(self, snapshot: FleetSnapshot) -> None:
        """Show the fleet as it stood when the session aborted."""
        if self._format == "rich":
            self._rich.fleet_table(snapshot)

    def session_ended(
        self,
        snapshot: FleetSnapshot,
        stats: SessionStats,
        *,
        sink_failures: Mapping[str, int] | None = None,
    ) -> None:
        """Final output once the stream ends cleanly.

        *sink_failures* maps a display sink to how many snapshots it failed
        to show.
        """
        failures = dict(sink_failures or {})
        if self._format == "rich":
            self._rich.fleet_table(snapshot)
            self._rich.session_summary(stats, sink_failures=failures)
            return
        if self._format == "quiet":
            return
        if stats.warnings:
            print(  # noqa: T201
                f"{stats.warnings} protocol warning(s); see log output",
                file=sys.stderr,
            )
        for name, count in failures.items():
            print(f"{name} output failed for {count} snapshot(s)", file=sys.stderr)  # noqa: T201

    def output_error(self, *, code: str, message: str, command: str, **details: Any) -> None:
        """Report a fatal error: JSON envelope on stdout, red line otherwise."""
        if self._format == "json":
            envelope = format_json_error(code=code, message=message, command=command, **details)
            print(envelope)  # noqa: T201
        else:
            self._rich.error(message)
