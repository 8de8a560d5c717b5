"""serve: run the native messaging host on stdin/stdout."""

from __future__ import annotations

import click

from rapunzel.commands._context import AppContext


@click.command()
@click.pass_obj
def serve(app: AppContext) -> None:
    """Speak the framed protocol on stdin/stdout until input closes.

    This is also what runs when rapunzel is started without a subcommand.
    """
    from rapunzel.host.dispatcher import run_host

    code = run_host(
        app.host,
        click.get_binary_stream("stdin"),
        click.get_binary_stream("stdout"),
    )
    click.get_current_context().exit(code)
