"""
Test doubles — a mock adapter and a fake host.

``MockAdapter`` simulates command execution without touching apt, snap
or flatpak. ``FakeHost`` simulates the probes the gatekeeper makes, and
records every one of them so a test can assert what was (not) probed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from snapflat.adapters.base import Adapter, ExecutionContext
from snapflat.adapters.host import HostProbe, ProbeResult
from snapflat.core.models.action import Receipt, ReceiptStatus


class MockAdapter(Adapter):
    """Succeeds at every Action unless told to fail it.

    Failures are keyed by action id and last forever, or for ``times``
    calls when given (to exercise retries).
    """

    def __init__(self, name: str = "mock", output: str = "[mock] executed"):
        self.name = name
        self._output = output
        self._failures: dict[str, tuple[str, int | None]] = {}
        self._calls: list[ExecutionContext] = []

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def executed_ids(self) -> list[str]:
        """Action ids in execution order."""
        return [ctx.action.id for ctx in self._calls]

    def set_failure(
        self,
        action_id: str,
        error: str = "Mock failure",
        times: int | None = None,
    ) -> None:
        self._failures[action_id] = (error, times)

    def execute(self, context: ExecutionContext) -> Receipt:
        self._calls.append(context)
        action_id = context.action.id

        if action_id in self._failures:
            error, remaining = self._failures[action_id]
            if remaining is None or remaining > 0:
                if remaining is not None:
                    self._failures[action_id] = (error, remaining - 1)
                return self.receipt(context, ReceiptStatus.FAILED, error=error)

        return self.receipt(context, output=self._output)


class FakeHost(HostProbe):
    """In-memory HostProbe.

    Args:
        uid: Effective user id.
        executables: Names found on PATH.
        env: Environment variables.
        files: Path → contents for readable files.
        paths: Extra paths that exist (directories, markers).
        commands: argv tuple → ProbeResult. Unlisted commands exit 1
            when their executable is on PATH, 127 otherwise.
        installed_packages: Packages ``dpkg -s`` reports as installed.
    """

    def __init__(
        self,
        uid: int = 0,
        executables: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        files: Mapping[str, str] | None = None,
        paths: Sequence[str] = (),
        commands: Mapping[tuple[str, ...], ProbeResult] | None = None,
        installed_packages: Sequence[str] = (),
    ):
        self.uid = uid
        self.executables = set(executables)
        self.env = dict(env or {})
        self.files = dict(files or {})
        self.paths = set(paths)
        self.commands = dict(commands or {})
        self.installed_packages = set(installed_packages)
        if self.installed_packages:
            self.executables.add("dpkg")
        self.probes: list[str] = []
        self.relaunched: list[list[str]] = []

    def effective_uid(self) -> int:
        self.probes.append("euid")
        return self.uid

    def which(self, name: str) -> str | None:
        self.probes.append(f"which:{name}")
        return f"/usr/bin/{name}" if name in self.executables else None

    def getenv(self, name: str) -> str:
        self.probes.append(f"env:{name}")
        return self.env.get(name, "")

    def read_text(self, path: str) -> str | None:
        self.probes.append(f"read:{path}")
        return self.files.get(path)

    def exists(self, path: str) -> bool:
        self.probes.append(f"exists:{path}")
        return path in self.paths or path in self.files

    def run(self, argv: Sequence[str], interactive: bool = False) -> ProbeResult:
        key = tuple(argv)
        self.probes.append("run:" + " ".join(key))
        if key in self.commands:
            return self.commands[key]
        if key[:2] == ("dpkg", "-s") and len(key) == 3:
            return ProbeResult(returncode=0 if key[2] in self.installed_packages else 1)
        return ProbeResult(returncode=1 if key[0] in self.executables else 127)

    def relaunch(self, argv: Sequence[str]) -> None:
        self.relaunched.append(list(argv))
