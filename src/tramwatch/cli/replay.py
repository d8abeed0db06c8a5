"""CLI command: ``tramwatch replay FILE``: decode a recorded feed capture."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from tramwatch.cli._options import global_options
from tramwatch.models.config import AppSettings

if TYPE_CHECKING:
    from tramwatch.cli.main import AppContext


@click.command("replay")
@click.argument("capture", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=None,
    help="Feed the decoder this many bytes at a time (default: read size)",
)
@click.option(
    "--dashboard",
    is_flag=True,
    default=False,
    help="Show the TUI while replaying (rich format on a TTY only)",
)
@global_options
def replay_cmd(
    app_ctx: AppContext,
    capture: str,
    chunk_size: int | None,
    dashboard: bool,
) -> None:
    """Replay a raw capture of the feed (e.g. from ``nc HOST PORT > feed.bin``).

    Produces the same output as ``watch`` and exits 1 if the capture ends
    mid-record.
    """
    settings = AppSettings()
    if app_ctx.output_format is None:
        app_ctx.use_format(settings.output_format)
    asyncio.run(
        _cmd_replay(
            app_ctx,
            capture=capture,
            chunk_size=chunk_size,
            read_size=settings.read_size,
            dashboard=dashboard,
            settings=settings,
        )
    )


async def _cmd_replay(
    app_ctx: AppContext,
    *,
    capture: str,
    chunk_size: int | None,
    read_size: int,
    dashboard: bool,
    settings: AppSettings,
) -> None:
    from tramwatch.cli._feed import run_feed
    from tramwatch.stream.source import FileSource

    async with FileSource(capture, chunk_size=chunk_size) as source:
        await run_feed(
            source,
            app_ctx.formatter,
            address=str(source.path),
            read_size=read_size,
            interactive=dashboard and sys.stdout.isatty(),
            log_dir=settings.config_path,
        )
