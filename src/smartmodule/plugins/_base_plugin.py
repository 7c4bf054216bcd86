"""Plugin contract for the dispatch pipeline.

A plugin wraps the handlers a router dispatches. ``Router.plug(code, **options)``
creates one instance per router; the router layers ``wrap_handler`` results so
the first attached plugin runs outermost.

``CommandEntry``
    One row of the handler table: ``name`` (call target such as
    ``"greet::hello"``), ``func``, ``router``, ``plugins`` (codes applied, in
    order) and ``metadata`` (marker options; per-plugin overrides live under
    ``metadata["plugin_config"][code]``).

``BasePlugin``
    Subclasses set ``plugin_code`` and declare their options as keyword
    parameters of ``configure``, whose body may stay empty. The declared
    defaults become ``plugin_defaults``. Calling ``configure`` checks the
    values with Pydantic's ``validate_call`` and stores them as router-level
    ``options``. Overrides given on a handler's ``route`` marker
    (``logging_after=False``) are checked the same way when the handler is
    registered. ``options_for(entry)`` merges defaults, router-level options
    and the handler's overrides; a plugin whose merged ``enabled`` is false is
    skipped for that handler.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from pydantic import validate_call

__all__ = ["BasePlugin", "CommandEntry"]


@dataclass
class CommandEntry:
    """Metadata for a registered command handler."""

    name: str
    func: Callable
    router: Any
    plugins: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def plugin_overrides(self, code: str) -> Dict[str, Any]:
        return self.metadata.get("plugin_config", {}).get(code, {})


class BasePlugin:
    """Base class for dispatch plugins."""

    __slots__ = ("router", "options")

    plugin_code: str = ""
    plugin_description: str = ""
    plugin_defaults: Dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        declared = cls.__dict__.get("configure")
        if declared is not None:
            cls._declare_options(declared)

    @classmethod
    def _declare_options(cls, declared: Callable) -> None:
        checked = validate_call(declared)

        def configure(self: "BasePlugin", **options: Any) -> None:
            checked(self, **options)
            self.options.update(options)

        configure.__doc__ = declared.__doc__
        cls.configure = configure
        cls.check_options = staticmethod(checked)
        cls.plugin_defaults = {
            param.name: param.default
            for param in inspect.signature(declared).parameters.values()
            if param.default is not inspect.Parameter.empty
        }

    def __init__(self, router: Any, **options: Any) -> None:
        self.router = router
        self.options: Dict[str, Any] = {}
        self.configure(**options)

    @property
    def name(self) -> str:
        return self.plugin_code

    def configure(self, enabled: bool = True) -> None:
        """Router-level options; subclasses redeclare with their own keys."""

    def options_for(self, entry: CommandEntry) -> Dict[str, Any]:
        merged = dict(self.plugin_defaults)
        merged.update(self.options)
        merged.update(entry.plugin_overrides(self.plugin_code))
        return merged

    def enabled_for(self, entry: CommandEntry) -> bool:
        return bool(self.options_for(entry).get("enabled", True))

    def on_decore(self, entry: CommandEntry) -> None:
        """Check the handler's marker overrides; runs once per registration."""
        overrides = entry.plugin_overrides(self.plugin_code)
        if overrides:
            self.check_options(self, **overrides)

    def wrap_handler(self, entry: CommandEntry, call_next: Callable) -> Callable:
        """Return the callable dispatched for ``entry``; default passthrough."""
        return call_next


BasePlugin._declare_options(BasePlugin.__dict__["configure"])
