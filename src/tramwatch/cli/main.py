"""``tramwatch`` command group, shared CLI state and the process entry point."""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import Any

import click

from tramwatch.errors import ConfigError, DecodeError, TransportError, UnexpectedEndOfStream
from tramwatch.output.formatter import OUTPUT_FORMATS, OutputFormatter

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

EXIT_FEED_FAILED = 1
EXIT_INTERRUPTED = 130

# Most specific first: UnexpectedEndOfStream is a DecodeError.
_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (UnexpectedEndOfStream, "unexpected_end_of_stream"),
    (DecodeError, "decode_error"),
    (TransportError, "transport_error"),
    (ConfigError, "config_error"),
)


@dataclasses.dataclass
class AppContext:
    """Options from the root group, refined by each subcommand.

    The formatter is built on first use so that ``--format`` / ``--quiet``
    given after the subcommand name (or the settings fallback) still apply.
    """

    output_format: str | None = None
    quiet: bool = False
    verbose: bool = False
    command: str = "unknown"
    _formatter: OutputFormatter | None = dataclasses.field(default=None, repr=False)

    @property
    def formatter(self) -> OutputFormatter:
        if self._formatter is None:
            self._formatter = OutputFormatter(
                force_format="quiet" if self.quiet else self.output_format
            )
        return self._formatter

    def use_format(self, output_format: str | None, *, quiet: bool = False) -> None:
        """Switch format (or go quiet) before anything has been printed."""
        if output_format is not None:
            self.output_format = output_format
        self.quiet = self.quiet or quiet
        self._formatter = None

    def configure_logging(self) -> None:
        """stderr logging; ``--verbose`` lowers the tramwatch loggers to DEBUG."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(stream=sys.stderr, level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
        logging.getLogger("tramwatch").setLevel(level)


@click.group()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    envvar="TRAMWATCH_OUTPUT_FORMAT",
    help="rich, json, text or quiet (default: rich on a TTY, json when piped)",
)
@click.option("--quiet", is_flag=True, default=False, help="Print nothing to stdout")
@click.option("--verbose", is_flag=True, default=False, help="DEBUG logging, including hex dumps")
@click.version_option(package_name="tramwatch")
@click.pass_context
def cli(ctx: click.Context, output_format: str | None, quiet: bool, verbose: bool) -> None:
    """Watch a tram fleet feed and show a live dashboard."""
    # main() passes its own AppContext in so it can still report after Click unwinds.
    app_ctx = ctx.ensure_object(AppContext)
    app_ctx.output_format = output_format
    app_ctx.quiet = quiet
    app_ctx.verbose = verbose
    app_ctx.command = ctx.invoked_subcommand or "unknown"
    app_ctx.configure_logging()


def _register_commands() -> None:
    from tramwatch.cli.replay import replay_cmd
    from tramwatch.cli.watch import watch_cmd

    cli.add_command(watch_cmd)
    cli.add_command(replay_cmd)


_register_commands()


def main(argv: list[str] | None = None) -> None:
    """Console-script entry point.

    Exit codes: ``0`` clean end of stream, ``1`` transport / decode errors,
    ``2`` usage errors, ``130`` interrupted.
    """
    app_ctx = AppContext()
    try:
        cli(args=argv, standalone_mode=False, obj=app_ctx)
    except click.exceptions.Exit as exc:
        raise SystemExit(exc.exit_code) from None
    except (click.exceptions.Abort, KeyboardInterrupt):
        # Click turns Ctrl+C inside a command into Abort.
        raise SystemExit(EXIT_INTERRUPTED) from None
    except click.ClickException as exc:
        exc.show()
        raise SystemExit(exc.exit_code) from None
    except Exception as exc:
        app_ctx.formatter.output_error(
            code=_error_code(exc),
            message=str(exc) or type(exc).__name__,
            command=app_ctx.command,
            **_error_details(exc),
        )
        raise SystemExit(EXIT_FEED_FAILED) from exc


def _error_code(exc: Exception) -> str:
    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            return code
    return type(exc).__name__


def _error_details(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, TransportError) and exc.port is not None:
        return {"host": exc.host, "port": exc.port}
    if isinstance(exc, UnexpectedEndOfStream):
        return {"pending_bytes": exc.pending_bytes}
    return {}
