"""
Gate errors — the terminal failures of a run.

Every error here is fatal to the current process and carries the exit
code the CLI reports. Nothing below the CLI catches them.

    ConfigError             → 2  (fix the invocation)
    SettingsError           → 2  (fix the settings file)
    PrivilegeError          → 1  (fix sudo / run as root)
    UnsupportedEnvironment  → 1  (run on a real host or VM)
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class GateError(Exception):
    """Base class for errors that abort the run before installing anything."""

    exit_code: int = EXIT_FAILURE

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint


class ConfigError(GateError):
    """Raised for unknown or contradictory command-line arguments."""

    exit_code = EXIT_USAGE


class SettingsError(GateError):
    """Raised when the settings file is unreadable or invalid."""

    exit_code = EXIT_USAGE


class PrivilegeError(GateError):
    """Raised when the process is not root and cannot escalate."""


class UnsupportedEnvironment(GateError):
    """Raised when running under WSL or inside a container."""
