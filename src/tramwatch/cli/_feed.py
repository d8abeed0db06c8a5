"""Run a feed session and wire its snapshots to the selected display."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from tramwatch.errors import DecodeError, TransportError
from tramwatch.stream.fanout import SnapshotFanout
from tramwatch.stream.session import FleetSession

if TYPE_CHECKING:
    from pathlib import Path

    from tramwatch.fleet.state import FleetSnapshot
    from tramwatch.output.formatter import OutputFormatter
    from tramwatch.stream.dashboard import FleetDashboard
    from tramwatch.stream.source import ByteSource
    from tramwatch.stream.tui import FleetTUI

logger = logging.getLogger(__name__)


async def run_feed(
    source: ByteSource,
    formatter: OutputFormatter,
    *,
    address: str,
    read_size: int,
    interactive: bool,
    legacy_dashboard: bool = False,
    log_dir: Path | None = None,
) -> FleetSnapshot:
    """Consume *source* until it ends and return the final snapshot.

    json and text print every snapshot as it arrives (see
    :meth:`OutputFormatter.snapshot_sink`).  In rich mode an *interactive*
    session gets the Textual TUI, or the Rich Live table with
    *legacy_dashboard*; either way the final fleet table and session summary
    are printed once the stream ends.
    """
    fanout = SnapshotFanout()
    tui: FleetTUI | None = None
    dashboard: FleetDashboard | None = None

    sink = formatter.snapshot_sink()
    if sink is not None:
        fanout.add_sink(sink, name=formatter.format)
    elif formatter.format == "rich" and interactive:
        if legacy_dashboard:
            from tramwatch.stream.dashboard import FleetDashboard

            dashboard = FleetDashboard(address)
            fanout.add_sink(dashboard.on_snapshot, name="live")
        else:
            from tramwatch.stream.tui import FleetTUI

            tui = FleetTUI(address=address, log_dir=log_dir)
            fanout.add_sink(tui.push_snapshot, name="tui")

    session = FleetSession(source, fanout.on_snapshot, read_size=read_size)
    logger.debug("Feed %s: format=%s sinks=%d", address, formatter.format, fanout.sink_count)

    try:
        if tui is not None:
            final = await _run_with_tui(session, tui)
        elif dashboard is not None:
            final = await _run_with_live(session, dashboard, formatter)
        else:
            final = await session.run()
    except (DecodeError, TransportError):
        formatter.session_failed(session.snapshot())
        raise

    formatter.session_ended(final, session.stats, sink_failures=fanout.failures)
    return final


async def _run_with_live(
    session: FleetSession, dashboard: FleetDashboard, formatter: OutputFormatter
) -> FleetSnapshot:
    from rich.live import Live

    with Live(dashboard, console=formatter.console, refresh_per_second=4) as live:
        dashboard.set_live(live)
        return await session.run()


async def _run_with_tui(session: FleetSession, tui: FleetTUI) -> FleetSnapshot:
    """Run the session alongside the TUI.

    Quitting the TUI cancels the session.  When the stream ends first, the
    TUI stays up (showing why) until the user quits.
    """
    session_task = asyncio.create_task(session.run())
    tui_task = asyncio.create_task(tui.run_async())
    done, _pending = await asyncio.wait(
        {session_task, tui_task}, return_when=asyncio.FIRST_COMPLETED
    )

    if session_task not in done:
        session_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await session_task
        # Re-raises if the TUI crashed.
        tui_task.result()
        return session.snapshot()

    exc = session_task.exception()
    tui.set_stream_ended(f"Feed failed: {exc}" if exc is not None else "")
    await tui_task
    if exc is not None:
        raise exc
    return session_task.result()
