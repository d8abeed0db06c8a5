"""Tests for the FleetTUI Textual dashboard."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

import pytest
from textual.widgets import DataTable, Static

from tramwatch.fleet.state import FleetSnapshot, TramState
from tramwatch.stream.tui import (
    ACTIVITY_SOURCES,
    ActivityCapture,
    ActivityEntry,
    ActivityLogHandler,
    FleetTUI,
    HelpScreen,
    format_uptime,
)


def _snapshot(
    *trams: tuple[str, str | None, int | None],
    sequence: int = 1,
    changed: str | None = None,
) -> FleetSnapshot:
    return FleetSnapshot(
        trams=tuple(
            TramState(tram_id=tid, location=loc, passenger_count=count, first_seen_order=i)
            for i, (tid, loc, count) in enumerate(trams)
        ),
        sequence=sequence,
        taken_at=datetime.now(UTC),
        changed=changed,
    )


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    for _ in range(int(timeout / 0.05)):
        if predicate():
            return
        await asyncio.sleep(0.05)


def _record(name: str, level: int, msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


# ---------------------------------------------------------------------------
# Activity sidebar plumbing
# ---------------------------------------------------------------------------


class TestActivityLogHandler:
    def test_maps_source_label(self) -> None:
        queue: asyncio.Queue[ActivityEntry] = asyncio.Queue()
        ActivityLogHandler(queue).emit(_record("tramwatch.stream.client", logging.INFO))
        assert queue.get_nowait() == ActivityEntry("NET", "blue", "hello")

    def test_warning_is_highlighted(self) -> None:
        queue: asyncio.Queue[ActivityEntry] = asyncio.Queue()
        handler = ActivityLogHandler(queue)
        handler.emit(_record("tramwatch.protocol.assembler", logging.WARNING))
        handler.emit(_record("tramwatch.stream.session", logging.ERROR))
        assert queue.get_nowait()[:2] == ("PROTO", "dark_orange")
        assert queue.get_nowait()[:2] == ("FEED", "red")

    def test_unknown_logger(self) -> None:
        queue: asyncio.Queue[ActivityEntry] = asyncio.Queue()
        ActivityLogHandler(queue).emit(_record("other", logging.INFO))
        assert queue.get_nowait()[:2] == ("LOG", "white")

    def test_full_queue_drops_silently(self) -> None:
        queue: asyncio.Queue[ActivityEntry] = asyncio.Queue(maxsize=1)
        handler = ActivityLogHandler(queue)
        handler.emit(_record("tramwatch.fleet", logging.INFO))
        handler.emit(_record("tramwatch.fleet", logging.INFO))
        assert queue.qsize() == 1


class TestActivityCapture:
    def test_install_and_restore(self, tmp_path: Path) -> None:
        session_log = logging.getLogger("tramwatch.stream.session")
        level_before = session_log.level
        capture = ActivityCapture(asyncio.Queue(), tmp_path / "logs")

        capture.install()
        try:
            assert capture.installed
            assert session_log.propagate is False
            assert session_log.level == logging.DEBUG
            logging.getLogger("tramwatch.protocol.framing").debug("read 5 byte(s)")
        finally:
            capture.restore()

        assert not capture.installed
        assert session_log.level == level_before
        for prefix, _label, _color in ACTIVITY_SOURCES:
            assert logging.getLogger(prefix).propagate is True
        assert "read 5 byte(s)" in (tmp_path / "logs" / "tui-activity.log").read_text()

    def test_restore_without_install_is_noop(self) -> None:
        ActivityCapture(asyncio.Queue()).restore()

    def test_sidebar_skips_debug(self) -> None:
        queue: asyncio.Queue[ActivityEntry] = asyncio.Queue()
        capture = ActivityCapture(queue)
        capture.install()
        try:
            logging.getLogger("tramwatch.fleet.aggregator").debug("noise")
            logging.getLogger("tramwatch.fleet.aggregator").info("New tram T1")
        finally:
            capture.restore()
        assert queue.get_nowait().message == "New tram T1"
        assert queue.empty()


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "00:00:00"), (59.9, "00:00:59"), (3725, "01:02:05")],
)
def test_format_uptime(seconds: float, expected: str) -> None:
    assert format_uptime(seconds) == expected


# ---------------------------------------------------------------------------
# FleetTUI
# ---------------------------------------------------------------------------


class TestFleetTUI:
    @pytest.mark.asyncio
    async def test_app_starts_and_stops(self) -> None:
        app = FleetTUI(address="127.0.0.1:8081")
        async with app.run_test() as pilot:
            assert app.is_running
            await pilot.press("q")

    @pytest.mark.asyncio
    async def test_header_status(self) -> None:
        app = FleetTUI(address="127.0.0.1:8081")
        async with app.run_test():
            app._refresh_header()
            assert "127.0.0.1:8081" in (app.title or "")
            assert app.status == "Waiting"

            await app.push_snapshot(_snapshot(("T1", "A", None), changed="T1"))
            await _wait_for(lambda: app.snapshot_count == 1)
            app._refresh_header()
            assert "[Live]" in (app.title or "")
            assert "Trams: 1" in (app.sub_title or "")

            app.set_stream_ended()
            assert "[Ended]" in (app.title or "")

    @pytest.mark.asyncio
    async def test_snapshot_adds_rows_in_slot_order(self) -> None:
        app = FleetTUI()
        async with app.run_test():
            await app.push_snapshot(
                _snapshot(("TRAM001", "Flinders", 50), ("TRAM002", None, 22), changed="TRAM002")
            )
            await _wait_for(lambda: app.snapshot_count == 1)

            table = app.query_one("#fleet-table", DataTable)
            assert table.row_count == 2
            assert table.get_row_at(0)[1] == "TRAM001"
            assert table.get_row_at(1)[2] == "—"
            assert table.get_cell("TRAM002", "slot") == "*2"

    @pytest.mark.asyncio
    async def test_existing_row_updates_in_place(self) -> None:
        app = FleetTUI()
        async with app.run_test():
            await app.push_snapshot(_snapshot(("T1", "A", None), changed="T1"))
            await app.push_snapshot(
                _snapshot(("T1", "B", 7), ("T2", "C", None), sequence=2, changed="T2")
            )
            await _wait_for(lambda: app.snapshot_count == 2)

            table = app.query_one("#fleet-table", DataTable)
            assert table.row_count == 2
            assert table.get_cell("T1", "location") == "B"
            assert table.get_cell("T1", "passengers") == "7"
            # Marker moves to the latest changed tram.
            assert table.get_cell("T1", "slot") == "1"
            assert table.get_cell("T2", "slot") == "*2"

    @pytest.mark.asyncio
    async def test_queue_overflow_keeps_newest(self) -> None:
        app = FleetTUI(queue_size=2)
        for seq in range(1, 6):
            await app.push_snapshot(_snapshot(("T1", str(seq), None), sequence=seq))
        assert app._queue.qsize() == 2
        assert [app._queue.get_nowait().sequence for _ in range(2)] == [4, 5]

    @pytest.mark.asyncio
    async def test_stream_ended_shows_status_bar(self) -> None:
        app = FleetTUI()
        async with app.run_test():
            app.set_stream_ended("Feed failed: Stream ended mid-record")
            assert app.query_one("#status-bar", Static).display

    def test_stream_ended_before_mount(self) -> None:
        app = FleetTUI()
        app.set_stream_ended()
        assert app.status == "Ended"

    @pytest.mark.asyncio
    async def test_reason_set_before_mount_is_shown(self) -> None:
        app = FleetTUI()
        app.set_stream_ended("Feed failed: Stream ended mid-record")
        async with app.run_test():
            assert app.query_one("#status-bar", Static).display
            assert "[Ended]" in (app.title or "")

    @pytest.mark.asyncio
    async def test_help_screen(self) -> None:
        app = FleetTUI(address="127.0.0.1:8081")
        async with app.run_test() as pilot:
            await pilot.press("question_mark")
            assert isinstance(app.screen, HelpScreen)
            await pilot.press("escape")
            assert not isinstance(app.screen, HelpScreen)

    @pytest.mark.asyncio
    async def test_activity_log_file(self, tmp_path: Path) -> None:
        app = FleetTUI(log_dir=tmp_path)
        async with app.run_test() as pilot:
            assert app.activity_log_path == tmp_path / "tui-activity.log"
            logging.getLogger("tramwatch.fleet.aggregator").info("New tram T1 (slot 1)")
            await pilot.press("q")
        assert "New tram T1" in (tmp_path / "tui-activity.log").read_text()

    @pytest.mark.asyncio
    async def test_logging_restored_on_exit(self) -> None:
        app = FleetTUI()
        async with app.run_test():
            assert logging.getLogger("tramwatch.stream.session").propagate is False
        for prefix, _label, _color in ACTIVITY_SOURCES:
            assert logging.getLogger(prefix).propagate is True
