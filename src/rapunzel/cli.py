"""Root CLI group for rapunzel with global flags and command registration.

With no subcommand the helper starts speaking the native messaging
protocol immediately, which is how the browser launches it.
"""

from __future__ import annotations

import sys

import click

from rapunzel import __version__
from rapunzel.commands import register_commands
from rapunzel.commands._context import AppContext
from rapunzel.config.settings import HostSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="rapunzel")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging on stderr.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """rapunzel: load local extensions into Firefox on request."""
    settings = HostSettings.from_cli(config_path=config_path, verbose=verbose, log_json=log_json)
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        from rapunzel.commands.serve import serve

        ctx.invoke(serve)


register_commands(cli)


def _launched_by_browser(args: list[str]) -> bool:
    """Firefox passes the host manifest path and add-on id; Chrome an origin."""
    first = args[0]
    return first.endswith(".json") or first.startswith("chrome-extension://")


def main() -> None:
    """Console-script entry point."""
    args = sys.argv[1:]
    if args and _launched_by_browser(args):
        args = []
    cli.main(args=args, prog_name="rapunzel")
