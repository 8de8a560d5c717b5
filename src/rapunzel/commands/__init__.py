"""Subcommand modules for rapunzel.

Provides register_commands(), which imports the command modules on demand
so importing the package itself stays side-effect free.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the host command and the diagnostic commands on the root group."""
    from rapunzel.commands.inspect import scan, status
    from rapunzel.commands.serve import serve

    cli.add_command(serve)
    cli.add_command(scan)
    cli.add_command(status)
