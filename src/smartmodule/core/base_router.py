"""Plugin-free handler table.

The module exposes :class:`BaseRouter`, an explicit registration table that
maps call-target names (``"greet"``, ``"greet::hello"``) to handlers defined
on an owner: a Python module (the hosting script) or an object instance.
Subclasses add middleware but must preserve these semantics.

Constructor and slots
---------------------
Constructor signature::

    BaseRouter(owner, name=None, *, get_use_smartasync=None, auto_discover=True)

- ``owner`` is required; ``None`` raises ``ValueError``.
- ``name`` selects which ``route`` markers this router consumes: a marker
  created with ``route(..., router="admin")`` is only seen by a router named
  ``"admin"``; unnamed markers are seen by unnamed routers.
- Slots: ``instance``, ``name``, ``_entries`` (name → CommandEntry),
  ``_handlers`` (name → wrapped callable), ``_discovered`` (names that came
  from marker discovery), ``_get_defaults``.
- ``get_use_smartasync`` becomes a default merged via ``SmartOptions`` in
  ``get()``.
- When ``auto_discover`` is true, markers are collected at init.

Registration
------------
``add_entry(target, *, name=None, replace=False, **options)``

- ``target`` is a callable, the name of an attribute of ``owner``, or ``"*"``
  to collect ``route`` markers.
- The call-target name is ``name`` when given, the function name otherwise.
  ``replace=False`` raises ``ValueError`` on collision.
- Functions are bound to instance owners; module owners keep plain functions.
- Options named ``<plugin>_<key>`` for a registered plugin are moved under
  ``metadata["plugin_config"][plugin][key]``; the rest lands in metadata.

Marker discovery
----------------
Module owners are scanned through ``vars(owner)`` in definition order.
Instance owners walk the reversed MRO of ``type(owner)``. Duplicate functions
(by identity) are skipped. ``refresh()`` drops previously discovered entries
and scans again, so functions defined after the router was built are seen;
explicitly added entries win over markers carrying the same name.

Lookup
------
- ``has_entry(name)`` tells whether a handler is registered under ``name``.
- ``get(name, **options)`` returns the wrapped handler or raises
  ``NotImplementedError``. With ``use_smartasync`` the handler is wrapped by
  ``smartasync.smartasync``.
- ``entries()`` returns registered names in registration order.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Iterator, Optional, Set, Tuple

from smartseeds import SmartOptions

from smartmodule.plugins._base_plugin import CommandEntry

__all__ = ["BaseRouter", "TARGET_ATTR_NAME"]

TARGET_ATTR_NAME = "__smartmodule_targets__"
DISCOVER_MARKER = "*"


class BaseRouter:
    """Plugin-free handler table bound to an owner."""

    __slots__ = (
        "instance",
        "name",
        "_entries",
        "_handlers",
        "_discovered",
        "_get_defaults",
    )

    def __init__(
        self,
        owner: Any,
        name: Optional[str] = None,
        *,
        get_use_smartasync: Optional[bool] = None,
        auto_discover: bool = True,
    ) -> None:
        if owner is None:
            raise ValueError("Router requires an owner module or instance")
        self.instance = owner
        self.name = name
        self._entries: Dict[str, CommandEntry] = {}
        self._handlers: Dict[str, Callable] = {}
        self._discovered: Set[str] = set()
        self._get_defaults: Dict[str, Any] = {}
        if get_use_smartasync is not None:
            self._get_defaults["use_smartasync"] = get_use_smartasync
        if auto_discover:
            self.add_entry(DISCOVER_MARKER)

    def _is_known_plugin(self, prefix: str) -> bool:
        from smartmodule.core.router import Router

        return prefix in Router.available_plugins()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add_entry(
        self,
        target: Any,
        *,
        name: Optional[str] = None,
        replace: bool = False,
        **options: Any,
    ) -> "BaseRouter":
        """Register a handler (or every marked function) on this router.

        Args:
            target: Callable, attribute name of the owner, or ``"*"``.
            name: Call-target name for this entry (``"greet::hello"``).
            replace: Allow overwriting an existing name.
            options: Metadata for the entry; ``<plugin>_<key>`` options
                configure that plugin for this handler.

        Returns:
            self (to allow chaining).

        Raises:
            ValueError: on handler name collision when replace is False.
            AttributeError: when the owner has no such attribute.
            TypeError: on unsupported target type.
        """
        if target == DISCOVER_MARKER:
            self._register_marked(replace=replace, keep_explicit=False)
            return self
        if isinstance(target, str):
            bound = getattr(self.instance, target)
        elif callable(target):
            bound = self._bind(target)
        else:
            raise TypeError(f"Unsupported add_entry target: {target!r}")
        self._register_callable(bound, name=name, replace=replace, options=options)
        return self

    def refresh(self) -> "BaseRouter":
        """Forget discovered entries and scan the owner for markers again."""
        for logical_name in self._discovered:
            self._entries.pop(logical_name, None)
        self._discovered = set()
        self._register_marked(replace=False, keep_explicit=True)
        self._rebuild_handlers()
        return self

    def _split_plugin_options(
        self, options: Dict[str, Any]
    ) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, Any]]:
        plugin_options: Dict[str, Dict[str, Any]] = {}
        metadata: Dict[str, Any] = {}
        for key, value in options.items():
            plugin_name, _, plug_key = key.partition("_")
            if plug_key and self._is_known_plugin(plugin_name):
                plugin_options.setdefault(plugin_name, {})[plug_key] = value
            else:
                metadata[key] = value
        return plugin_options, metadata

    def _bind(self, func: Callable) -> Callable:
        if inspect.ismodule(self.instance) or not inspect.isfunction(func):
            return func
        return func.__get__(self.instance, type(self.instance))

    def _register_callable(
        self,
        bound: Callable,
        *,
        name: Optional[str],
        replace: bool,
        options: Dict[str, Any],
    ) -> CommandEntry:
        logical_name = name or getattr(bound, "__name__", type(bound).__name__)
        if logical_name in self._entries and not replace:
            raise ValueError(f"Handler name collision: {logical_name}")
        plugin_options, metadata = self._split_plugin_options(options)
        if plugin_options:
            metadata["plugin_config"] = plugin_options
        entry = CommandEntry(name=logical_name, func=bound, router=self, metadata=metadata)
        self._entries[logical_name] = entry
        self._discovered.discard(logical_name)
        self._after_entry_registered(entry)
        self._rebuild_handlers()
        return entry

    def _register_marked(self, *, replace: bool, keep_explicit: bool) -> None:
        for func, marker in self._iter_marked_functions():
            entry_name = marker.pop("entry_name", None) or func.__name__
            if keep_explicit and entry_name in self._entries:
                continue
            entry = self._register_callable(
                self._bind(func), name=entry_name, replace=replace, options=marker
            )
            self._discovered.add(entry.name)

    def _iter_marked_functions(self) -> Iterator[Tuple[Callable, Dict[str, Any]]]:
        seen: Set[int] = set()
        for namespace in self._owner_namespaces():
            for value in list(namespace.values()):
                if not inspect.isfunction(value) or id(value) in seen:
                    continue
                seen.add(id(value))
                for marker in getattr(value, TARGET_ATTR_NAME, None) or ():
                    if marker.get("router") != self.name:
                        continue
                    payload = dict(marker)
                    payload.pop("router", None)
                    yield value, payload

    def _owner_namespaces(self) -> Iterator[Dict[str, Any]]:
        if inspect.ismodule(self.instance):
            yield vars(self.instance)
            return
        for base in reversed(type(self.instance).__mro__):
            yield vars(base)

    def _wrap_handler(
        self, entry: CommandEntry, call_next: Callable
    ) -> Callable:  # pragma: no cover - overridden by plugin routers
        return call_next

    def _rebuild_handlers(self) -> None:
        self._handlers = {
            logical_name: self._wrap_handler(entry, entry.func)
            for logical_name, entry in self._entries.items()
        }

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def has_entry(self, name: str) -> bool:
        """Return True when a handler is registered under exactly ``name``."""
        return name in self._handlers

    def get(self, name: str, **options: Any) -> Callable:
        """Return the handler registered under ``name``.

        Raises NotImplementedError for unknown names. When ``use_smartasync``
        is true, coroutine handlers are made callable from synchronous code.
        """
        opts = SmartOptions(options, defaults=self._get_defaults)
        handler = self._handlers.get(name)
        if handler is None:
            raise NotImplementedError(f"Handler '{name}' not found")
        if getattr(opts, "use_smartasync", False):
            from smartasync import smartasync  # type: ignore

            handler = smartasync(handler)
        return handler

    def entries(self) -> Tuple[str, ...]:
        """Return the names registered on this router."""
        return tuple(self._handlers.keys())

    def _after_entry_registered(
        self, entry: CommandEntry
    ) -> None:  # pragma: no cover - hook for subclasses
        """Hook invoked after a handler is registered."""
        return None
