"""Plugin loading and fail-safe hook dispatch for load lifecycle events."""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from itemscreen.plugins.hookspecs import ItemScreenHookSpec

PROJECT_NAME = "itemscreen"
ENTRY_POINT_GROUP = "itemscreen.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` for itemscreen hooks.

    Entry points may name either a plugin object or a plugin class; classes
    are instantiated once at load time so hooks bind to an instance.
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ItemScreenHookSpec)
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Load the ``itemscreen.plugins`` entry points; return all plugin names."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if count:
            logger.debug("Loaded %d entry-point plugin(s)", count)
        for plugin in [p for p in self._pm.get_plugins() if inspect.isclass(p)]:
            self._instantiate(plugin)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin: %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def list_plugin_names(self) -> list[str]:
        names = []
        for plugin in self._pm.get_plugins():
            names.append(self._pm.get_name(plugin) or type(plugin).__name__)
        return names

    def dispatch(self, hook_name: str, **payload: Any) -> bool:
        """Call *hook_name* on all plugins; False when one of them raised.

        INVARIANT: A failing plugin never fails the load that triggered it.
        """
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            logger.debug("No hook named %s", hook_name)
            return True
        try:
            caller(**payload)
        except Exception:
            logger.warning("Plugin hook %s raised", hook_name, exc_info=True)
            return False
        return True

    def _instantiate(self, plugin_cls: type) -> None:
        name = self._pm.get_name(plugin_cls) or plugin_cls.__name__
        self._pm.unregister(plugin_cls)
        try:
            instance = plugin_cls()
        except Exception:
            logger.warning("Could not instantiate plugin %s", name, exc_info=True)
            return
        self._pm.register(instance, name=name)
