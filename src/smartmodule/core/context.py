"""Execution context detection and module name resolution.

``detect_context(entry_point, program)`` tells whether the hosting script is
the program the interpreter was started with (``EXECUTED``) or a module that
another script imported (``IMPORTED``). Only base filenames are compared, so
``./greet.py`` and ``/srv/bin/greet.py`` match. An empty entry point (REPL,
``python -c``) is always ``IMPORTED``.

``resolve_module_name(program)`` strips directories and the last extension:
``/abs/path/greet.py`` → ``greet``, ``archive.tar.gz`` → ``archive.tar``. It
never raises; odd inputs degrade to whatever text remains.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Optional

from smartmodule.diagnostics import Diagnostics

__all__ = ["ExecutionContext", "detect_context", "resolve_module_name"]


class ExecutionContext(str, Enum):
    EXECUTED = "executed"
    IMPORTED = "imported"


def _basename(path: Optional[str]) -> str:
    if not path:
        return ""
    path = os.fspath(path).rstrip("/" + os.sep)
    return os.path.basename(path)


def detect_context(
    entry_point: Optional[str],
    program: Optional[str],
    diagnostics: Optional[Diagnostics] = None,
) -> ExecutionContext:
    """Compare the hosting script with the running program by basename."""
    if diagnostics is not None:
        diagnostics.debug(f"Original script: {entry_point or ''}")
        diagnostics.debug(f"Running script: {program or ''}")
    original = _basename(entry_point)
    if original and original == _basename(program):
        return ExecutionContext.EXECUTED
    return ExecutionContext.IMPORTED


def resolve_module_name(program: Optional[str]) -> str:
    """Return the program's base filename without its final extension."""
    filename = _basename(program)
    if "." in filename:
        return filename.rsplit(".", 1)[0]
    return filename
