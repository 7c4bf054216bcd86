"""Debug output, error reporting and call-stack rendering.

``Diagnostics`` bundles three independent facilities:

- ``debug(message)`` prints to stdout only when the instance is enabled;
  multi-line messages are printed as-is. Enabled messages are also sent to
  the ``smartmodule`` logger at DEBUG level; a disabled instance emits nothing.
- ``error(message)`` prints ``Error: <message>`` to stderr, always.
- ``render_stack_trace(skip_frames=1)`` renders the live Python call stack.

Stack trace layout
------------------
Frame ``0`` is ``render_stack_trace`` itself, so the default depth of ``1``
starts at its caller. Frames are numbered innermost ``[0]`` outward and
printed outermost first::

      [2] <main> (greet.py:40)
      [1] run (.../smartmodule/core/dispatch.py:171)
      [0] dispatch (.../smartmodule/core/dispatch.py:128)

Module-level code is shown as ``<main>``. Frames running inside the
``smartmodule`` package report the package module's own file. The location
is dimmed with ANSI gray unless color is disabled; it reads ``(source)``
when the frame has no line number.
"""

from __future__ import annotations

import inspect
import logging
import sys
from dataclasses import dataclass
from typing import Any, List, Optional, TextIO

from smartmodule.errors import InvalidDiagnosticArgument

__all__ = ["CallFrame", "Diagnostics"]

GRAY = "\033[90m"
RESET = "\033[0m"

_PACKAGE = __name__.split(".")[0]


@dataclass(frozen=True)
class CallFrame:
    """One entry of a rendered stack trace."""

    function: str
    source: str
    line: Optional[int] = None

    def location(self) -> str:
        if self.line is None:
            return self.source
        return f"{self.source}:{self.line}"


class Diagnostics:
    """Conditional debug output plus unconditional error reporting."""

    __slots__ = ("enabled", "color", "_stdout", "_stderr", "_logger")

    def __init__(
        self,
        enabled: bool = False,
        *,
        color: bool = True,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.enabled = bool(enabled)
        self.color = bool(color)
        self._stdout = stdout
        self._stderr = stderr
        self._logger = logger or logging.getLogger("smartmodule")

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "Diagnostics":
        return cls(settings.debug_enabled, color=settings.color, **kwargs)

    # Streams are resolved per call so redirected sys.stdout/sys.stderr apply.
    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def debug(self, message: str) -> None:
        if not self.enabled:
            return
        self._logger.debug(message)
        print(message, file=self.stdout)

    def error(self, message: str) -> None:
        print(f"Error: {message}", file=self.stderr)

    # ------------------------------------------------------------------
    # Stack traces
    # ------------------------------------------------------------------
    def collect_frames(self, skip_frames: Any = 0) -> List[CallFrame]:
        """Return frames from ``skip_frames`` outward, innermost first.

        Frame 0 is this method's caller.

        Raises:
            InvalidDiagnosticArgument: when ``skip_frames`` is not a
                non-negative integer.
        """
        depth = _parse_depth(skip_frames)
        frame = inspect.currentframe()
        if frame is None:
            return []
        frame = frame.f_back
        frames: List[CallFrame] = []
        index = 0
        while frame is not None:
            if index >= depth:
                frames.append(_describe_frame(frame))
            frame = frame.f_back
            index += 1
        return frames

    def render_stack_trace(self, skip_frames: Any = 1) -> Optional[str]:
        """Render the call stack, or return None after reporting a bad depth."""
        try:
            frames = self.collect_frames(skip_frames)
        except InvalidDiagnosticArgument as exc:
            self.error(str(exc))
            return None
        if not frames:
            return ""
        gray, reset = (GRAY, RESET) if self.color else ("", "")
        lines = [
            f"  [{index}] {frame.function} {gray}({frame.location()}){reset}"
            for index, frame in enumerate(frames)
        ]
        return "\n".join(reversed(lines))


def _parse_depth(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidDiagnosticArgument("Depth argument must be a number")
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    raise InvalidDiagnosticArgument("Depth argument must be a number")


def _describe_frame(frame: Any) -> CallFrame:
    code = frame.f_code
    name = code.co_name
    if name == "<module>" or not name:
        name = "<main>"
    module_name = frame.f_globals.get("__name__") or ""
    if module_name == _PACKAGE or module_name.startswith(_PACKAGE + "."):
        source = frame.f_globals.get("__file__") or code.co_filename
    else:
        source = code.co_filename or "<unknown>"
    return CallFrame(function=name, source=source, line=frame.f_lineno)
