"""Module router: context detection, name resolution and dispatch.

``ModuleRouter`` is a plugin-enabled ``Router`` bound to the hosting script.
It is built with an explicit ``ModuleSettings`` value and routes once, when
``run()`` (or ``dispatch()``) is called.

Routing pass
------------
1. Debug: ``Routing with arguments: ...`` and the current stack trace.
2. Context detection: an ``IMPORTED`` hosting script is skipped
   (``dispatch`` returns ``None``, ``run`` returns without exiting).
3. Module name from the program path; the handler table is refreshed from the
   owner's ``route`` markers.
4. With arguments, ``<module>::<args[0]>`` is tried first and receives
   ``args[1:]``.
5. Otherwise, or when that misses, ``<module>`` receives the *full* argument
   list, so a default handler can report an unknown subcommand itself.
6. If neither exists: ``Error: Function '<module>' not found.`` on stderr and
   status ``1``.

Handler return values become exit statuses: ``None`` → 0, ``int`` → itself,
``True``/``False`` → 0/1, anything else → 0. Exceptions raised by handlers
are not intercepted.

Lifecycle
---------
A router starts ``armed`` and becomes ``routed`` after its first pass; a
second pass raises ``RuntimeError``.
"""

from __future__ import annotations

import inspect
import sys
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

from smartmodule.core.context import ExecutionContext, detect_context, resolve_module_name
from smartmodule.core.router import Router
from smartmodule.diagnostics import Diagnostics
from smartmodule.errors import RoutingMiss
from smartmodule.settings import ModuleSettings

__all__ = ["ModuleRouter", "module", "exit_status"]

SUBCOMMAND_SEPARATOR = "::"


def exit_status(result: Any) -> int:
    """Map a handler's return value to a process exit status."""
    if result is None:
        return 0
    if isinstance(result, bool):
        return 0 if result else 1
    if isinstance(result, int):
        return result
    return 0


def _owner_source(owner: Any) -> str:
    source = getattr(owner, "__file__", None)
    if source:
        return source
    defining = sys.modules.get(getattr(type(owner), "__module__", ""))
    return getattr(defining, "__file__", None) or ""


class ModuleRouter(Router):
    """Route a script invocation to ``<module>::<subcommand>`` or ``<module>``."""

    __slots__ = ("settings", "diagnostics", "entry_point", "_routed")

    def __init__(
        self,
        owner: Any,
        name: Optional[str] = None,
        *,
        settings: Optional[ModuleSettings] = None,
        diagnostics: Optional[Diagnostics] = None,
        entry_point: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.settings = settings if settings is not None else ModuleSettings.from_environ()
        self.diagnostics = (
            diagnostics if diagnostics is not None else Diagnostics.from_settings(self.settings)
        )
        self.entry_point = entry_point if entry_point is not None else _owner_source(owner)
        self._routed = False
        super().__init__(owner, name, **kwargs)

    @property
    def args(self) -> Tuple[str, ...]:
        """Invocation arguments captured in the settings."""
        return self.settings.args

    @property
    def state(self) -> str:
        return "routed" if self._routed else "armed"

    @property
    def module_name(self) -> str:
        return resolve_module_name(self.settings.program)

    def detect(self) -> ExecutionContext:
        return detect_context(self.entry_point, self.settings.program, self.diagnostics)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def resolve(self, args: Sequence[str]) -> Tuple[str, Callable, Tuple[str, ...]]:
        """Pick the target for ``args`` and the arguments it receives.

        Raises:
            RoutingMiss: when neither the subcommand nor the default handler exists.
        """
        debug = self.diagnostics.debug
        module_name = self.module_name
        debug(f"Module name: {module_name}")
        args = tuple(args)
        tried = []

        if args:
            target = f"{module_name}{SUBCOMMAND_SEPARATOR}{args[0]}"
            tried.append(target)
            debug(f"Looking for function: {target}")
            if self.has_entry(target):
                debug(f"Found function: {target}")
                return target, self.get(target), args[1:]

        tried.append(module_name)
        debug(f"Looking for function: {module_name}")
        if self.has_entry(module_name):
            debug(f"Found function: {module_name}")
            return module_name, self.get(module_name), args

        raise RoutingMiss(module_name, tuple(tried))

    def dispatch(self, args: Optional[Sequence[str]] = None) -> Optional[int]:
        """Run one routing pass and return the exit status.

        Returns None when the hosting script was imported rather than executed.
        """
        if self._routed:
            raise RuntimeError("Routing already performed for this router")
        self._routed = True
        args = self.settings.args if args is None else tuple(args)

        if self.diagnostics.enabled:
            self.diagnostics.debug(f"Routing with arguments: {' '.join(args)}")
            trace = self.diagnostics.render_stack_trace()
            if trace:
                self.diagnostics.debug(trace)

        if self.detect() is ExecutionContext.IMPORTED:
            return None

        self.refresh()
        try:
            _target, handler, call_args = self.resolve(args)
        except RoutingMiss as exc:
            self.diagnostics.error(str(exc))
            return 1
        return exit_status(handler(*call_args))

    def run(self, args: Optional[Sequence[str]] = None) -> None:
        """Route and exit with the handler's status; return if imported."""
        status = self.dispatch(args)
        if status is None:
            return
        sys.exit(status)


def module(
    args: Optional[Sequence[str]] = None,
    *,
    owner: Any = None,
    settings: Optional[ModuleSettings] = None,
    plugins: Iterable[str] = (),
    **options: Any,
) -> None:
    """Route the calling script, mirroring ``module "$@"`` at its end.

    Args:
        args: Arguments to route; defaults to ``sys.argv[1:]``.
        owner: Module or instance holding the handlers; defaults to the caller's module.
        settings: Explicit settings; built from the environment when omitted.
        plugins: Names of registered plugins to attach.
        options: Extra ``ModuleRouter`` keyword arguments.
    """
    if owner is None:
        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        module_name = caller.f_globals.get("__name__") if caller is not None else None
        owner = sys.modules.get(module_name or "__main__")
        del frame, caller
    if settings is None:
        settings = ModuleSettings.from_environ(args)
    elif args is not None:
        settings = settings.model_copy(update={"args": tuple(args)})
    router = ModuleRouter(owner, settings=settings, **options)
    for plugin_name in plugins:
        router.plug(plugin_name)
    router.run()
