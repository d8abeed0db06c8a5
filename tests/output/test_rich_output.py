from __future__ import annotations

from datetime import UTC, datetime
from io import StringIO

from rich.console import Console

from tramwatch.fleet.state import FleetSnapshot, TramState
from tramwatch.output.rich_output import (
    PLACEHOLDER,
    RichOutput,
    build_fleet_table,
    format_location,
    format_passenger_count,
)
from tramwatch.stream.session import SessionStats


def _make_console() -> tuple[Console, StringIO]:
    """Return a ``(Console, buffer)`` pair for capturing Rich output."""
    buf = StringIO()
    console = Console(file=buf, force_terminal=True, width=100)
    return console, buf


def _snapshot(changed: str | None = "TRAM002") -> FleetSnapshot:
    return FleetSnapshot(
        trams=(
            TramState(tram_id="TRAM001", location="Flinders", passenger_count=50, first_seen_order=0),
            TramState(tram_id="TRAM002", passenger_count=22, first_seen_order=1),
        ),
        sequence=3,
        taken_at=datetime(2024, 3, 1, tzinfo=UTC),
        changed=changed,
    )


class TestFormatters:
    def test_location(self) -> None:
        assert format_location(TramState(tram_id="T", location="CITY", first_seen_order=0)) == "CITY"
        assert format_location(TramState(tram_id="T", first_seen_order=0)) == PLACEHOLDER

    def test_passenger_count(self) -> None:
        tram = TramState(tram_id="T", passenger_count=0, first_seen_order=0)
        assert format_passenger_count(tram) == "0"
        assert format_passenger_count(TramState(tram_id="T", first_seen_order=0)) == PLACEHOLDER


class TestFleetTable:
    def test_columns_and_rows(self) -> None:
        table = build_fleet_table(_snapshot())
        assert [c.header for c in table.columns] == ["#", "Tram", "Location", "Passengers"]
        assert table.row_count == 2
        assert table.title == "Realtime Tram Dashboard"

    def test_changed_row_is_bold(self) -> None:
        table = build_fleet_table(_snapshot())
        assert table.rows[0].style is None
        assert table.rows[1].style == "bold"

    def test_renders_in_slot_order(self) -> None:
        console, buf = _make_console()
        RichOutput(console).fleet_table(_snapshot(changed=None))
        output = buf.getvalue()

        assert output.index("TRAM001") < output.index("TRAM002")
        assert "Flinders" in output
        assert "50" in output
        assert PLACEHOLDER in output

    def test_empty_fleet(self) -> None:
        console, buf = _make_console()
        empty = FleetSnapshot(trams=(), sequence=0, taken_at=datetime.now(UTC))
        RichOutput(console).fleet_table(empty)
        assert "No trams observed yet." in buf.getvalue()


class TestSessionSummary:
    def test_clean_session(self) -> None:
        console, buf = _make_console()
        stats = SessionStats(
            bytes_read=1234,
            records=12,
            messages_applied=4,
            messages_rejected=0,
            messages_dropped=0,
            messages_skipped=0,
            warnings=0,
        )
        RichOutput(console).session_summary(stats)
        output = buf.getvalue()
        assert "1,234" in output
        assert "Messages applied" in output
        assert "Warnings" not in output

    def test_problem_counters_shown(self) -> None:
        console, buf = _make_console()
        stats = SessionStats(
            bytes_read=100,
            records=9,
            messages_applied=1,
            messages_rejected=1,
            messages_dropped=0,
            messages_skipped=2,
            warnings=2,
        )
        RichOutput(console).session_summary(stats)
        output = buf.getvalue()
        assert "Messages rejected" in output
        assert "Unknown messages" in output
        assert "Warnings" in output
        assert "Messages dropped" not in output

    def test_sink_failures_shown(self) -> None:
        console, buf = _make_console()
        stats = SessionStats(
            bytes_read=44,
            records=4,
            messages_applied=3,
            messages_rejected=0,
            messages_dropped=0,
            messages_skipped=0,
            warnings=0,
        )
        RichOutput(console).session_summary(stats, sink_failures={"tui": 3})
        output = buf.getvalue()
        assert "tui sink failures" in output


class TestMessages:
    def test_error(self) -> None:
        console, buf = _make_console()
        RichOutput(console).error("Connection refused")
        output = buf.getvalue()
        assert "Error:" in output
        assert "Connection refused" in output

    def test_warning(self) -> None:
        console, buf = _make_console()
        RichOutput(console).warning("odd feed")
        assert "Warning:" in buf.getvalue()
