"""Process-level settings injected into a ``ModuleRouter``.

``ModuleSettings`` replaces ambient globals with one frozen value:

- ``args``: invocation arguments, captured once (tuple of strings).
- ``debug``: debug toggle; any non-zero integer enables diagnostics. Strings
  are parsed as integers and anything non-numeric counts as ``0``.
- ``program``: the path the process runs as (``sys.argv[0]``).
- ``color``: ANSI styling for stack traces.

``ModuleSettings.from_environ()`` reads ``sys.argv``, ``MODULE_DEBUG`` and
``NO_COLOR``; callers may pass explicit ``argv``/``environ`` mappings instead.
"""

from __future__ import annotations

import os
import sys
from typing import Any, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

__all__ = ["ModuleSettings", "DEBUG_ENV_VAR", "NO_COLOR_ENV_VAR"]

DEBUG_ENV_VAR = "MODULE_DEBUG"
NO_COLOR_ENV_VAR = "NO_COLOR"


class ModuleSettings(BaseModel):
    """Immutable routing configuration."""

    model_config = ConfigDict(frozen=True)

    args: Tuple[str, ...] = ()
    debug: int = 0
    program: str = ""
    color: bool = True

    @field_validator("debug", mode="before")
    @classmethod
    def _parse_debug(cls, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, str):
            value = value.strip()
            if not value or not value.lstrip("+-").isdigit():
                return 0
            return int(value)
        return value

    @property
    def debug_enabled(self) -> bool:
        return self.debug != 0

    @classmethod
    def from_environ(
        cls,
        args: Optional[Sequence[str]] = None,
        *,
        argv: Optional[Sequence[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ModuleSettings":
        """Build settings from the command line and environment.

        Args:
            args: Explicit invocation arguments; defaults to ``argv[1:]``.
            argv: Command line to read; defaults to ``sys.argv``.
            environ: Environment mapping; defaults to ``os.environ``.
        """
        argv = list(sys.argv if argv is None else argv)
        environ = os.environ if environ is None else environ
        return cls(
            args=tuple(argv[1:] if args is None else args),
            debug=environ.get(DEBUG_ENV_VAR, "0"),
            program=argv[0] if argv else "",
            color=not environ.get(NO_COLOR_ENV_VAR),
        )
