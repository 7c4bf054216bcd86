"""Decorator helper for marking command handlers.

``route(name=None, *, router=None, **kwargs)``

- Returns a decorator storing metadata on the function under ``TARGET_ATTR_NAME``
  as a list of dicts. Each payload starts with ``{"router": router}``.
- ``name`` is the exact call-target name (``"greet"``, ``"greet::hello"``).
  When omitted the function name is used, so ``def greet(*args)`` is the
  default handler of ``greet.py``.
- Extra ``**kwargs`` are copied verbatim into the payload (plugin options such
  as ``logging_before=False`` included). Existing markers are preserved; the
  new one is appended so a function can be exposed under several names.
- The decorator returns the original function unchanged aside from the marker.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from .base_router import TARGET_ATTR_NAME

__all__ = ["route"]


def route(name: Optional[str] = None, *, router: Optional[str] = None, **kwargs: Any) -> Callable:
    """Mark a function for discovery by a module router.

    Args:
        name: Call-target name; defaults to the function name.
        router: Name of the router that should pick the function up.
    """

    def decorator(func: Callable) -> Callable:
        markers = list(getattr(func, TARGET_ATTR_NAME, []))
        payload = {"router": router}
        if name is not None:
            payload["entry_name"] = name
        payload.update(kwargs)
        markers.append(payload)
        setattr(func, TARGET_ATTR_NAME, markers)
        return func

    return decorator
