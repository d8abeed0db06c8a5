"""Plain-text dashboard for dumb terminals and log files.

Output format::

    Realtime Tram Dashboard
    Tram 1: TRAM001
        Location: Flinders
        Passenger Count: 50
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tramwatch.output.rich_output import format_location, format_passenger_count

if TYPE_CHECKING:
    from tramwatch.fleet.state import FleetSnapshot

SEPARATOR = "*" * 37


def render_text_dashboard(snapshot: FleetSnapshot) -> str:
    lines = ["Realtime Tram Dashboard"]
    for tram in snapshot:
        lines.append(f"Tram {tram.first_seen_order + 1}: {tram.tram_id}")
        lines.append(f"    Location: {format_location(tram)}")
        lines.append(f"    Passenger Count: {format_passenger_count(tram)}")
        lines.append("")
    return "\n".join(lines).rstrip("\n") + "\n"
