"""CLI command: ``tramwatch watch PORT``: live dashboard for a publisher."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from tramwatch.cli._options import global_options
from tramwatch.models.config import AppSettings

if TYPE_CHECKING:
    from tramwatch.cli.main import AppContext


@click.command("watch")
@click.argument("port", type=click.IntRange(1, 65535), required=False)
@click.option(
    "--host",
    default=None,
    help="Publisher host (env: TRAMWATCH_HOST, default 127.0.0.1)",
)
@click.option(
    "--read-size",
    type=click.IntRange(min=1),
    default=None,
    help="Bytes requested per socket read (env: TRAMWATCH_READ_SIZE)",
)
@click.option(
    "--connect-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds to wait for the connection (env: TRAMWATCH_CONNECT_TIMEOUT)",
)
@click.option(
    "--legacy-dashboard",
    is_flag=True,
    default=False,
    help="Use the Rich Live dashboard instead of the full-screen TUI",
)
@global_options
def watch_cmd(
    app_ctx: AppContext,
    port: int | None,
    host: str | None,
    read_size: int | None,
    connect_timeout: float | None,
    legacy_dashboard: bool,
) -> None:
    """Connect to the tram publisher on PORT and show the fleet live.

    Runs until the publisher closes the stream (exit 0) or the connection
    fails (exit 1).

    \b
    Examples:
      tramwatch watch 8081                      # TUI dashboard
      tramwatch watch 8081 --legacy-dashboard   # Rich Live table
      tramwatch watch 8081 --format json        # JSON line per update
      tramwatch watch 8081 --format text        # plain dashboard
    """
    settings = AppSettings()
    port = port if port is not None else settings.port
    if port is None:
        raise click.UsageError("No port provided. Pass PORT or set TRAMWATCH_PORT.")
    if app_ctx.output_format is None:
        app_ctx.use_format(settings.output_format)

    asyncio.run(
        _cmd_watch(
            app_ctx,
            host=host or settings.host,
            port=port,
            read_size=read_size or settings.read_size,
            connect_timeout=connect_timeout or settings.connect_timeout,
            legacy_dashboard=legacy_dashboard,
            settings=settings,
        )
    )


async def _cmd_watch(
    app_ctx: AppContext,
    *,
    host: str,
    port: int,
    read_size: int,
    connect_timeout: float,
    legacy_dashboard: bool,
    settings: AppSettings,
) -> None:
    from tramwatch.cli._feed import run_feed
    from tramwatch.stream.client import TramFeedClient

    formatter = app_ctx.formatter
    client = TramFeedClient(port, host, connect_timeout=connect_timeout)
    formatter.status(f"Connecting to {client.address}...")
    await client.connect()

    try:
        await run_feed(
            client,
            formatter,
            address=client.address,
            read_size=read_size,
            interactive=sys.stdout.isatty(),
            legacy_dashboard=legacy_dashboard,
            log_dir=settings.config_path,
        )
    finally:
        await client.close()
