"""smartmodule public API.

A hosting script marks its handlers and routes at its end::

    from smartmodule import module, route

    @route("greet::hello")
    def hello(name):
        print(f"Hello, {name}!")

    @route()
    def greet(*args):
        print("usage: greet.py hello <name>")

    module()

Running ``greet.py hello Terry`` calls ``hello("Terry")``; ``greet.py`` and
``greet.py unknown`` call ``greet`` with the full argument list. When another
script imports ``greet``, ``module()`` does nothing.

Importing this package registers the built-in ``logging`` plugin and does no
other work.
"""

from importlib import import_module

__version__ = "0.1.0"

from .core import ExecutionContext, ModuleRouter, Router, module, route
from .diagnostics import CallFrame, Diagnostics
from .errors import InvalidDiagnosticArgument, ModuleError, RoutingMiss
from .settings import ModuleSettings

import_module(f"{__name__}.plugins.logging")

__all__ = [
    "CallFrame",
    "Diagnostics",
    "ExecutionContext",
    "InvalidDiagnosticArgument",
    "ModuleError",
    "ModuleRouter",
    "ModuleSettings",
    "Router",
    "RoutingMiss",
    "module",
    "route",
]
