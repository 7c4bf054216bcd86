"""Dispatch logging plugin.

Reports every routed call: the call target, the arguments the router
forwarded to it, and the exit status its return value maps to::

    greet::hello('Terry')
    greet::hello -> exit 0 (0.41 ms)

The fallback handler shows the full argument list it received
(``greet('unknown', 'extra')``), which makes the two dispatch tiers easy to
tell apart in a log. A handler that raises is reported as
``greet::hello raised KeyError`` and the exception propagates unchanged.

Options, router-level via ``plug("logging", ...)`` or per handler via
``route(..., logging_<option>=...)``:

- ``enabled`` (True): skip the plugin entirely when false.
- ``before`` (True): report the call and its arguments.
- ``after`` (True): report the exit status and elapsed milliseconds.
- ``echo`` (True): when the logger has no handlers configured, write the
  messages to stderr instead, so the script's stdout is left alone.

Messages go to the ``smartmodule.dispatch`` logger at INFO unless another
logger is passed as ``logger=``.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Callable, Optional

from smartmodule.core.dispatch import exit_status
from smartmodule.core.router import Router
from smartmodule.plugins._base_plugin import BasePlugin, CommandEntry

DISPATCH_LOGGER = "smartmodule.dispatch"


def describe_call(target: str, args: tuple) -> str:
    return f"{target}({', '.join(repr(arg) for arg in args)})"


class LoggingPlugin(BasePlugin):
    """Log routed calls with their arguments and exit status."""

    plugin_code = "logging"
    plugin_description = "Logs dispatched call targets, arguments and exit statuses"

    __slots__ = ("logger",)

    def __init__(self, router, *, logger: Optional[logging.Logger] = None, **options):
        self.logger = logger or logging.getLogger(DISPATCH_LOGGER)
        super().__init__(router, **options)

    def configure(
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        echo: bool = True,
    ):
        """Router-level logging options."""

    def _emit(self, message: str, echo: bool) -> None:
        if self.logger.hasHandlers():
            self.logger.info(message)
        elif echo:
            print(message, file=sys.stderr)

    def wrap_handler(self, entry: CommandEntry, call_next: Callable) -> Callable:
        def logged(*args, **kwargs):
            opts = self.options_for(entry)
            if opts["before"]:
                self._emit(describe_call(entry.name, args), opts["echo"])
            started = time.perf_counter()
            try:
                result = call_next(*args, **kwargs)
            except BaseException as exc:
                self._emit(f"{entry.name} raised {type(exc).__name__}", opts["echo"])
                raise
            if opts["after"]:
                elapsed = (time.perf_counter() - started) * 1000
                status = exit_status(result)
                self._emit(f"{entry.name} -> exit {status} ({elapsed:.2f} ms)", opts["echo"])
            return result

        return logged


Router.register_plugin(LoggingPlugin)
