"""Core runtime aggregator.

Exposes the routing building blocks from a single module; importing it does
not register plugins or build routers.

- ``base_router`` → ``BaseRouter`` (plugin-free handler table)
- ``router`` → ``Router`` (plugin-enabled)
- ``decorators`` → ``route`` helper
- ``context`` → ``ExecutionContext``, ``detect_context``, ``resolve_module_name``
- ``dispatch`` → ``ModuleRouter``, ``module``
"""

from .base_router import BaseRouter
from .context import ExecutionContext, detect_context, resolve_module_name
from .decorators import route
from .dispatch import ModuleRouter, module
from .router import Router

__all__ = [
    "BaseRouter",
    "Router",
    "ModuleRouter",
    "ExecutionContext",
    "detect_context",
    "module",
    "resolve_module_name",
    "route",
]
