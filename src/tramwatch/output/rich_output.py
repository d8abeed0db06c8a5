from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Mapping

    from rich.console import Console

    from tramwatch.fleet.state import FleetSnapshot, TramState
    from tramwatch.stream.session import SessionStats

PLACEHOLDER = "—"


def format_location(tram: TramState) -> str:
    return tram.location if tram.location is not None else PLACEHOLDER


def format_passenger_count(tram: TramState) -> str:
    return str(tram.passenger_count) if tram.passenger_count is not None else PLACEHOLDER


def build_fleet_table(snapshot: FleetSnapshot, *, title: str = "Realtime Tram Dashboard") -> Table:
    """Build a Rich table with one row per tram in first-seen order.

    The row for the most recently updated tram is highlighted.
    """
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Tram", style="cyan")
    table.add_column("Location")
    table.add_column("Passengers", justify="right")

    for tram in snapshot:
        style = "bold" if tram.tram_id == snapshot.changed else None
        table.add_row(
            str(tram.first_seen_order + 1),
            tram.tram_id,
            format_location(tram),
            format_passenger_count(tram),
            style=style,
        )
    return table


class RichOutput:
    """Rich-based terminal output helpers for *tramwatch*."""

    def __init__(self, console: Console) -> None:
        self._con = console

    @property
    def console(self) -> Console:
        return self._con

    # ------------------------------------------------------------------
    # Fleet
    # ------------------------------------------------------------------

    def fleet_table(self, snapshot: FleetSnapshot) -> None:
        """Print the fleet as a table."""
        if not snapshot:
            self._con.print("[dim]No trams observed yet.[/dim]")
            return
        self._con.print(build_fleet_table(snapshot))

    def session_summary(
        self, stats: SessionStats, *, sink_failures: Mapping[str, int] | None = None
    ) -> None:
        """Print end-of-session counters, plus one row per display sink that failed."""
        table = Table(title="Session")
        table.add_column("Counter", style="bold")
        table.add_column("Value", justify="right")

        table.add_row("Bytes read", f"{stats.bytes_read:,}")
        table.add_row("Records", f"{stats.records:,}")
        table.add_row("Messages applied", f"{stats.messages_applied:,}")
        if stats.messages_rejected:
            table.add_row("Messages rejected", f"[yellow]{stats.messages_rejected:,}[/yellow]")
        if stats.messages_dropped:
            table.add_row("Messages dropped", f"[yellow]{stats.messages_dropped:,}[/yellow]")
        if stats.messages_skipped:
            table.add_row("Unknown messages", f"{stats.messages_skipped:,}")
        if stats.warnings:
            table.add_row("Warnings", f"[yellow]{stats.warnings:,}[/yellow]")
        for name, count in (sink_failures or {}).items():
            table.add_row(f"{name} sink failures", f"[red]{count:,}[/red]")

        self._con.print(table)

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def error(self, message: str) -> None:
        """Print a bold red error line."""
        self._con.print(f"[bold red]Error:[/bold red] {message}")

    def warning(self, message: str) -> None:
        self._con.print(f"[yellow]Warning:[/yellow] {message}")

    def info(self, message: str) -> None:
        """Print an informational message (plain)."""
        self._con.print(message)
