"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Configures logging up front and builds the
:class:`HostContext` lazily so ``--help`` never touches the config file.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from rapunzel.config.settings import HostSettings
    from rapunzel.host.context import HostContext


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: HostSettings) -> None:
        self.settings = settings
        self._host: HostContext | None = None

        from rapunzel.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def host(self) -> HostContext:
        """The helper's process context (created on first access)."""
        if self._host is None:
            from rapunzel.host.context import HostContext

            self._host = HostContext.open(self.settings)
        return self._host

    def emit(self, payload: dict[str, Any]) -> None:
        """Print *payload* as indented JSON for diagnostic commands.

        Never used by ``serve``: there stdout carries frames only.
        """
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
