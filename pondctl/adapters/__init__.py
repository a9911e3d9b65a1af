"""Adapters — bindings to the external processes the engine drives.

Public re-exports for convenient access.
"""

from pondctl.adapters.shell.command import CommandResult, ShellCommandAdapter

__all__ = [
    "CommandResult",
    "ShellCommandAdapter",
]
