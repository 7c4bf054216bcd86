"""Exceptions raised by smartmodule."""

from __future__ import annotations

from typing import Tuple

__all__ = ["ModuleError", "RoutingMiss", "InvalidDiagnosticArgument"]


class ModuleError(Exception):
    """Base class for smartmodule errors."""


class RoutingMiss(ModuleError, LookupError):
    """No handler matched the module or its subcommand."""

    def __init__(self, module_name: str, targets: Tuple[str, ...] = ()):
        self.module_name = module_name
        self.targets = tuple(targets)
        super().__init__(f"Function '{module_name}' not found.")


class InvalidDiagnosticArgument(ModuleError, ValueError):
    """A diagnostics helper received a malformed argument."""
