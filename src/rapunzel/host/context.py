"""HostContext: all mutable process state in one explicitly owned object.

Created once per helper process and handed to the dispatcher. Holds the
settings, the config store and its in-memory config, the state registry,
and the orchestrator that writes to it.
"""

from __future__ import annotations

import logging

from rapunzel.config.models import HelperConfig
from rapunzel.config.settings import HostSettings
from rapunzel.config.store import ConfigStore
from rapunzel.services.orchestrator import LoadOrchestrator
from rapunzel.services.registry import StateRegistry

logger = logging.getLogger(__name__)


class HostContext:
    """Process-wide state for one helper instance.

    The config is read once at construction and afterwards only changed
    through :meth:`set_folder`.
    """

    def __init__(
        self,
        settings: HostSettings,
        *,
        store: ConfigStore | None = None,
        config: HelperConfig | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or ConfigStore(settings.config_path)
        self.config = config if config is not None else self.store.load()
        self.registry = StateRegistry()
        self.orchestrator = LoadOrchestrator(self.registry, settings)

    @classmethod
    def open(cls, settings: HostSettings) -> HostContext:
        """Build a context, creating the config file with defaults if absent."""
        store = ConfigStore(settings.config_path)
        return cls(settings, store=store, config=store.load_or_create())

    def set_folder(self, folder: str) -> bool:
        """Point the helper at *folder* and persist it.

        The in-memory config changes even if persisting fails. Returns
        whether the file was written.
        """
        self.config = self.config.model_copy(update={"extension_folder": folder})
        persisted = self.store.save(self.config)
        if not persisted:
            logger.warning("Extension folder set to %s for this session only", folder)
        return persisted
