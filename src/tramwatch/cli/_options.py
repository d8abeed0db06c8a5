"""``--format`` / ``--quiet`` / ``--verbose`` accepted after the subcommand too."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any

import click

from tramwatch.output.formatter import OUTPUT_FORMATS

if TYPE_CHECKING:
    from collections.abc import Callable

    from tramwatch.cli.main import AppContext

_LOCAL_OPTIONS = (
    click.option(
        "--format",
        "cmd_format",
        type=click.Choice(OUTPUT_FORMATS),
        default=None,
        help="Same as the root --format",
    ),
    click.option("--quiet", "cmd_quiet", is_flag=True, default=False, help="Same as the root --quiet"),
    click.option(
        "--verbose", "cmd_verbose", is_flag=True, default=False, help="Same as the root --verbose"
    ),
)


def global_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a subcommand so it receives the :class:`AppContext` first.

    ``tramwatch watch 8081 --format json`` behaves like
    ``tramwatch --format json watch 8081``; when both are given the
    subcommand's value wins.
    """

    @click.pass_obj
    def wrapper(
        app_ctx: AppContext,
        /,
        *args: Any,
        cmd_format: str | None,
        cmd_quiet: bool,
        cmd_verbose: bool,
        **kwargs: Any,
    ) -> Any:
        if cmd_format is not None or cmd_quiet:
            app_ctx.use_format(cmd_format, quiet=cmd_quiet)
        if cmd_verbose and not app_ctx.verbose:
            app_ctx.verbose = True
            app_ctx.configure_logging()
        return f(app_ctx, *args, **kwargs)

    functools.update_wrapper(wrapper, f)
    for option in _LOCAL_OPTIONS:
        wrapper = option(wrapper)
    return wrapper
