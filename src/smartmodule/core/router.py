"""Handler table with a plugin pipeline.

``Router`` adds plugins to ``BaseRouter``. Plugin classes are registered once
per process under their ``plugin_code``; each router then attaches the ones
it wants with ``plug(code, **options)``.

- ``register_plugin(cls, name=None)`` accepts ``BasePlugin`` subclasses with
  a ``plugin_code``. A different class claiming a taken code raises
  ``ValueError`` unless ``name`` forces the replacement.
- ``plug`` validates the options, runs ``on_decore`` for the handlers already
  in the table and rewraps them. Attached plugins are reachable as
  attributes (``router.logging``).
- Handlers registered later go through ``on_decore`` of every attached plugin.
- Wrapping is rebuilt from ``entry.func`` on every table change. The first
  attached plugin is the outermost layer; a layer whose plugin is disabled
  for the entry (``enabled=False`` on the router or the handler's marker)
  passes the call straight through, checked on every call.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Type

from smartmodule.core.base_router import BaseRouter
from smartmodule.plugins._base_plugin import BasePlugin, CommandEntry

__all__ = ["Router"]

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}


class Router(BaseRouter):
    """Handler table whose handlers are wrapped by attached plugins."""

    __slots__ = ("_plugins",)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._plugins: List[BasePlugin] = []
        super().__init__(*args, **kwargs)

    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Make ``plugin_class`` available to ``plug`` under its code (or ``name``)."""
        if not isinstance(plugin_class, type) or not issubclass(plugin_class, BasePlugin):
            raise TypeError("plugin_class must be a BasePlugin subclass")
        if not plugin_class.plugin_code:
            raise ValueError(f"Plugin {plugin_class.__name__} has no plugin_code")
        code = name or plugin_class.plugin_code
        current = _PLUGIN_REGISTRY.get(code)
        if name is None and current is not None and current is not plugin_class:
            raise ValueError(f"Plugin '{code}' already registered")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **options: Any) -> "Router":
        """Attach the registered plugin ``plugin`` to this router."""
        if not isinstance(plugin, str):
            raise TypeError(f"Plugins are attached by code, got {type(plugin).__name__}")
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            available = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(f"Unknown plugin '{plugin}'. Available plugins: {available}")
        instance = plugin_class(self, **options)
        self._plugins.append(instance)
        for entry in self._entries.values():
            self._decorate(instance, entry)
        self._rebuild_handlers()
        return self

    def iter_plugins(self) -> List[BasePlugin]:
        """Attached plugins, outermost first."""
        return list(self._plugins)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        for plugin in self._plugins:
            if plugin.name == name:
                return plugin
        raise AttributeError(f"No plugin named '{name}' attached to router '{self.name}'")

    # ------------------------------------------------------------------
    # BaseRouter hooks
    # ------------------------------------------------------------------
    def _after_entry_registered(self, entry: CommandEntry) -> None:  # type: ignore[override]
        for plugin in self._plugins:
            self._decorate(plugin, entry)

    def _wrap_handler(self, entry: CommandEntry, call_next: Callable) -> Callable:  # type: ignore[override]
        wrapped = call_next
        for plugin in reversed(self._plugins):
            wrapped = _layer(plugin, entry, wrapped)
        return wrapped

    @staticmethod
    def _decorate(plugin: BasePlugin, entry: CommandEntry) -> None:
        if plugin.name not in entry.plugins:
            entry.plugins.append(plugin.name)
        plugin.on_decore(entry)


def _layer(plugin: BasePlugin, entry: CommandEntry, call_next: Callable) -> Callable:
    wrapped = plugin.wrap_handler(entry, call_next)

    @wraps(call_next)
    def layer(*args, **kwargs):
        if plugin.enabled_for(entry):
            return wrapped(*args, **kwargs)
        return call_next(*args, **kwargs)

    return layer
