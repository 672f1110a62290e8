"""
Host probe — the read-only view of the machine the gatekeeper inspects.

The gatekeeper never touches ``os``, ``shutil`` or ``subprocess``
directly: it asks a ``HostProbe``. ``SystemHost`` is the real binding;
tests inject ``snapflat.adapters.mock.FakeHost``.

Probes are synchronous and have no timeout. The one non-read-only
operation, ``relaunch``, replaces the current process.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """Exit status and stdout of a probe command."""

    returncode: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class HostProbe(ABC):
    """Abstract access to the host for environment detection."""

    @abstractmethod
    def effective_uid(self) -> int:
        """Effective user id of the current process."""

    @abstractmethod
    def which(self, name: str) -> str | None:
        """Full path of an executable on PATH, or None."""

    @abstractmethod
    def getenv(self, name: str) -> str:
        """Environment variable value, empty string when unset."""

    @abstractmethod
    def read_text(self, path: str) -> str | None:
        """File contents, or None if missing or unreadable."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a path exists (file, directory or symlink)."""

    @abstractmethod
    def run(self, argv: Sequence[str], interactive: bool = False) -> ProbeResult:
        """Run a probe command and wait for it.

        ``interactive`` leaves stdin/stderr attached to the terminal
        (for password prompts). A missing executable yields 127.
        """

    @abstractmethod
    def relaunch(self, argv: Sequence[str]) -> None:
        """Replace the current process with ``argv``."""


class SystemHost(HostProbe):
    """HostProbe bound to the running system."""

    def effective_uid(self) -> int:
        return os.geteuid()

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def getenv(self, name: str) -> str:
        return os.environ.get(name, "")

    def read_text(self, path: str) -> str | None:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def run(self, argv: Sequence[str], interactive: bool = False) -> ProbeResult:
        logger.debug("Probe: %s", " ".join(argv))
        try:
            if interactive:
                result = subprocess.run(list(argv), stdout=subprocess.PIPE, text=True)
            else:
                result = subprocess.run(list(argv), capture_output=True, text=True)
        except FileNotFoundError:
            return ProbeResult(returncode=127)
        except OSError as e:
            logger.debug("Probe %s failed to start: %s", argv[0], e)
            return ProbeResult(returncode=126)
        return ProbeResult(returncode=result.returncode, stdout=result.stdout or "")

    def relaunch(self, argv: Sequence[str]) -> None:
        logger.debug("Re-executing: %s", " ".join(argv))
        os.execvp(argv[0], list(argv))
