"""Plugin discovery and loading.

Discovery uses pluggy's setuptools entry-point loader for the
``cubectl.plugins`` group; built-in plugins are registered directly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pluggy

from cubectl.plugins.hookspecs import CubectlHookSpec

if TYPE_CHECKING:
    from cubectl.infrastructure.application import BackendFactory

PROJECT_NAME = "cubectl"
ENTRY_POINT_GROUP = "cubectl.plugins"

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, registration and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(CubectlHookSpec)
        self._loaded = False

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins; returns the names of all registered plugins."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def backends(self) -> dict[str, BackendFactory]:
        """Merge backend factories contributed by plugins.

        Later registrations win on name clashes; a plugin whose hook raises
        is skipped with a warning.
        """
        factories: dict[str, BackendFactory] = {}
        for impl in self._pm.hook.register_backend.get_hookimpls():
            try:
                contributed = impl.function()
            except Exception:
                logger.warning(
                    "Backend registration failed for %s", impl.plugin_name, exc_info=True
                )
                continue
            for name, factory in (contributed or {}).items():
                factories[name.lower()] = factory
        return factories
