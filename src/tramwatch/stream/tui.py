"""Full-screen Textual TUI dashboard for the tram fleet.

One table row per tram (in first-seen order) plus an activity sidebar that
shows connection events and protocol warnings as they happen.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar, NamedTuple

from textual.app import App, ComposeResult, ScreenStackError
from textual.binding import Binding
from textual.containers import Horizontal, VerticalScroll
from textual.css.query import NoMatches
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, RichLog, Static

from tramwatch.output.rich_output import format_location, format_passenger_count

if TYPE_CHECKING:
    from pathlib import Path

    from tramwatch.fleet.state import FleetSnapshot, TramState

ACTIVITY_LOG_NAME = "tui-activity.log"

# (logger prefix, sidebar label, Rich color); first match wins.
ACTIVITY_SOURCES: tuple[tuple[str, str, str], ...] = (
    ("tramwatch.stream.client", "NET", "blue"),
    ("tramwatch.stream.source", "NET", "blue"),
    ("tramwatch.stream.session", "FEED", "yellow"),
    ("tramwatch.protocol", "PROTO", "magenta"),
    ("tramwatch.fleet", "FLEET", "green"),
)


class ActivityEntry(NamedTuple):
    source: str
    color: str
    message: str


def classify_record(record: logging.LogRecord) -> tuple[str, str]:
    """Sidebar label and color for *record*; warnings and errors override the color."""
    label, color = "LOG", "white"
    for prefix, source_label, source_color in ACTIVITY_SOURCES:
        if record.name.startswith(prefix):
            label, color = source_label, source_color
            break
    if record.levelno >= logging.ERROR:
        color = "red"
    elif record.levelno >= logging.WARNING:
        color = "dark_orange"
    return label, color


class ActivityLogHandler(logging.Handler):
    """Puts formatted records on the sidebar queue; drops them when it is full."""

    def __init__(self, queue: asyncio.Queue[ActivityEntry]) -> None:
        super().__init__()
        self._queue = queue

    def emit(self, record: logging.LogRecord) -> None:
        label, color = classify_record(record)
        with contextlib.suppress(asyncio.QueueFull):
            self._queue.put_nowait(ActivityEntry(label, color, self.format(record)))


class ActivityCapture:
    """Diverts the tramwatch loggers away from the terminal while the TUI owns it.

    :meth:`install` attaches the sidebar handler (INFO and up) and, with a
    *log_dir*, a DEBUG file handler to every logger in
    :data:`ACTIVITY_SOURCES`, turns off propagation and removes plain
    stream handlers from the root logger.  :meth:`restore` undoes all of
    it and is safe to call more than once.
    """

    def __init__(self, queue: asyncio.Queue[ActivityEntry], log_dir: Path | None = None) -> None:
        self._handler = ActivityLogHandler(queue)
        self._handler.setLevel(logging.INFO)
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._log_dir = log_dir
        self._file_handler: logging.FileHandler | None = None
        self._saved: dict[str, tuple[int, bool]] = {}
        self._root_handlers: list[logging.Handler] | None = None

    @property
    def log_path(self) -> Path | None:
        return self._log_dir / ACTIVITY_LOG_NAME if self._log_dir is not None else None

    @property
    def installed(self) -> bool:
        return self._root_handlers is not None

    def _handlers(self) -> list[logging.Handler]:
        extra = [self._file_handler] if self._file_handler is not None else []
        return [self._handler, *extra]

    def install(self) -> None:
        if self.installed:
            return
        path = self.log_path
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handler = logging.FileHandler(path, encoding="utf-8")
            self._file_handler.setLevel(logging.DEBUG)
            self._file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s  %(levelname)-5s  [%(name)s]  %(message)s",
                    datefmt="%Y-%m-%dT%H:%M:%S",
                )
            )

        for prefix, _label, _color in ACTIVITY_SOURCES:
            log = logging.getLogger(prefix)
            self._saved[prefix] = (log.level, log.propagate)
            for handler in self._handlers():
                log.addHandler(handler)
            log.setLevel(logging.DEBUG)
            log.propagate = False

        self._root_handlers = logging.root.handlers[:]
        logging.root.handlers = [
            h
            for h in self._root_handlers
            if isinstance(h, logging.FileHandler) or not isinstance(h, logging.StreamHandler)
        ]

    def restore(self) -> None:
        if self._root_handlers is None:
            return
        for prefix, (level, propagate) in self._saved.items():
            log = logging.getLogger(prefix)
            for handler in self._handlers():
                log.removeHandler(handler)
            log.setLevel(level)
            log.propagate = propagate
        self._saved.clear()

        if self._file_handler is not None:
            self._file_handler.close()
            self._file_handler = None
        logging.root.handlers = self._root_handlers
        self._root_handlers = None


_HELP_TEXT = """\
KEYBINDINGS

  q          Quit
  ?          Toggle this help screen
  c          Clear the activity log

Trams keep the row they were first seen in.
The most recently updated tram is marked with *.
"""


class HelpScreen(ModalScreen[None]):
    BINDINGS: ClassVar[list[Binding]] = [  # type: ignore[assignment]
        Binding("escape", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close"),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-container {
        width: 56;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #help-feed {
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, feed_lines: list[str]) -> None:
        super().__init__()
        self._feed_lines = feed_lines

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-container"):
            yield Static("[b]tramwatch[/b]", id="help-title")
            yield Static(_HELP_TEXT, id="help-body")
            if self._feed_lines:
                yield Static("\n".join(self._feed_lines), id="help-feed")


def format_uptime(seconds: float) -> str:
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class FleetTUI(App[None]):
    """Full-screen fleet dashboard fed by :meth:`push_snapshot`.

    Snapshots pass through a bounded queue to a worker that edits the
    table in place.  Each snapshot holds the whole fleet, so on overflow
    the oldest pending one is discarded.
    """

    TITLE = "tramwatch"

    CSS = """
    #main-area {
        height: 1fr;
    }
    #fleet-table {
        width: 3fr;
        height: 1fr;
        border: solid $primary;
    }
    #activity-log {
        width: 2fr;
        min-width: 30;
        height: 1fr;
        border: solid $accent;
        padding: 0 1;
    }
    #status-bar {
        height: auto;
        background: $panel;
        padding: 0 1;
        display: none;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [  # type: ignore[assignment]
        Binding("q", "quit", "Quit"),
        Binding("question_mark", "help", "Help"),
        Binding("c", "clear_activity", "Clear Log"),
    ]

    COLUMNS: ClassVar[tuple[tuple[str, str, int], ...]] = (
        ("#", "slot", 4),
        ("Tram", "tram", 16),
        ("Location", "location", 28),
        ("Passengers", "passengers", 10),
    )

    def __init__(
        self, *, address: str = "", log_dir: Path | None = None, queue_size: int = 100
    ) -> None:
        super().__init__()
        self._address = address
        self._snapshot: FleetSnapshot | None = None
        self._snapshot_count = 0
        self._marked: str | None = None
        self._rows: set[str] = set()
        self._started_at = datetime.now(tz=UTC)
        self._ended = ""

        self._queue: asyncio.Queue[FleetSnapshot] = asyncio.Queue(maxsize=queue_size)
        self._activity: asyncio.Queue[ActivityEntry] = asyncio.Queue(maxsize=500)
        self._capture = ActivityCapture(self._activity, log_dir)

    @property
    def activity_log_path(self) -> Path | None:
        return self._capture.log_path

    @property
    def snapshot_count(self) -> int:
        return self._snapshot_count

    @property
    def status(self) -> str:
        if self._ended:
            return "Ended"
        return "Live" if self._snapshot is not None else "Waiting"

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="main-area"):
            yield DataTable(id="fleet-table", cursor_type="row", zebra_stripes=True)
            yield RichLog(id="activity-log", wrap=True, markup=True)
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#fleet-table", DataTable)
        table.border_title = "Fleet"
        for label, key, width in self.COLUMNS:
            table.add_column(label, key=key, width=width)
        self.query_one("#activity-log", RichLog).border_title = "Activity"

        self._capture.install()
        if self._ended:
            self._show_ended()
        self.set_interval(1.0, self._refresh_header)
        self.run_worker(self._drain_snapshots, exclusive=True)  # type: ignore[arg-type]
        self.run_worker(self._drain_activity, exclusive=False)  # type: ignore[arg-type]

    def on_unmount(self) -> None:
        self._capture.restore()

    # -- Feed side ------------------------------------------------------------

    async def push_snapshot(self, snapshot: FleetSnapshot) -> None:
        """:class:`~tramwatch.stream.fanout.SnapshotFanout` sink."""
        if self._queue.full():
            with contextlib.suppress(asyncio.QueueEmpty):
                self._queue.get_nowait()
        with contextlib.suppress(asyncio.QueueFull):
            self._queue.put_nowait(snapshot)

    def set_stream_ended(self, reason: str = "") -> None:
        """Show that the feed has stopped; *reason* is empty for a clean end."""
        self._ended = reason or "Stream ended"
        self._refresh_header()
        self._show_ended()

    def _show_ended(self) -> None:
        # Before mount there is no screen yet; on_mount shows it instead.
        try:
            bar = self.query_one("#status-bar", Static)
        except (NoMatches, ScreenStackError):
            return
        bar.update(f"[yellow]{self._ended}[/yellow] (press q to exit)")
        bar.display = True

    # -- Workers --------------------------------------------------------------

    async def _drain_snapshots(self) -> None:
        while True:
            self._show_snapshot(await self._queue.get())

    async def _drain_activity(self) -> None:
        activity_log = self.query_one("#activity-log", RichLog)
        while True:
            entry = await self._activity.get()
            ts = datetime.now(tz=UTC).strftime("%H:%M:%S")
            activity_log.write(f"[{entry.color}]{ts} {entry.source}[/{entry.color}] {entry.message}")

    def _show_snapshot(self, snapshot: FleetSnapshot) -> None:
        table = self.query_one("#fleet-table", DataTable)
        self._snapshot = snapshot
        self._snapshot_count += 1
        self._marked = snapshot.changed

        for tram in snapshot:
            cells = self._cells(tram)
            if tram.tram_id in self._rows:
                for (_label, key, _width), value in zip(self.COLUMNS, cells, strict=True):
                    table.update_cell(tram.tram_id, key, value)
            else:
                table.add_row(*cells, key=tram.tram_id)
                self._rows.add(tram.tram_id)

    def _cells(self, tram: TramState) -> tuple[str, str, str, str]:
        slot = str(tram.first_seen_order + 1)
        if tram.tram_id == self._marked:
            slot = f"*{slot}"
        return slot, tram.tram_id, format_location(tram), format_passenger_count(tram)

    def _refresh_header(self) -> None:
        self.title = f"tramwatch  {self._address or '(feed)'}  [{self.status}]"
        trams = len(self._snapshot) if self._snapshot is not None else 0
        messages = self._snapshot.sequence if self._snapshot is not None else 0
        uptime = format_uptime((datetime.now(tz=UTC) - self._started_at).total_seconds())
        self.sub_title = f"Trams: {trams}  Messages: {messages:,}  Up: {uptime}"

    # -- Actions --------------------------------------------------------------

    async def action_quit(self) -> None:
        self._capture.restore()
        self.exit()

    def action_help(self) -> None:
        lines: list[str] = []
        if self._address:
            lines.append(f"Feed: {self._address}")
        if self.activity_log_path is not None:
            lines.append(f"Activity log: {self.activity_log_path}")
        self.push_screen(HelpScreen(lines))

    def action_clear_activity(self) -> None:
        self.query_one("#activity-log", RichLog).clear()
