"""scan / status: run a single request locally and print the response.

Useful for checking a folder or the loader setup without a browser.
"""

from __future__ import annotations

import click

from rapunzel.commands._context import AppContext


@click.command()
@click.argument("folder", required=False, type=click.Path(file_okay=False))
@click.pass_obj
def scan(app: AppContext, folder: str | None) -> None:
    """List extensions in FOLDER (default: the configured folder).

    Entries whose manifest could not be parsed are listed under "skipped".
    """
    from rapunzel.infrastructure.scanner import scan_report

    target = folder if folder is not None else app.host.config.extension_folder
    report = scan_report(target)
    app.emit(
        {
            "folder": target,
            "extensions": [descriptor.payload() for descriptor in report.extensions],
            "skipped": [entry.model_dump() for entry in report.skipped],
        }
    )


@click.command()
@click.pass_obj
def status(app: AppContext) -> None:
    """Show the response the browser would get for a status request."""
    from rapunzel.host.dispatcher import Dispatcher

    app.emit(Dispatcher(app.host).handle({"action": "status"}))
