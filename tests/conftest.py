"""
Shared test fixtures and configuration.
"""

import logging

import pytest

from snapflat.adapters.host import ProbeResult
from snapflat.adapters.mock import FakeHost, MockAdapter
from snapflat.adapters.registry import AdapterRegistry
from snapflat.core.models.settings import InstallerSettings

DEBIAN_OS_RELEASE = 'PRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\nNAME="Debian GNU/Linux"\nID=debian\n'


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's SNAPFLAT_* variables out of the tests."""
    for var in ("SNAPFLAT_CONFIG", "SNAPFLAT_DRY_RUN", "SNAPFLAT_LOG_FILE",
                "SNAPFLAT_LOG_FILE_LEVEL", "SNAPFLAT_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def debian_host() -> FakeHost:
    """A root shell on a Debian VM with systemd running."""
    return FakeHost(
        uid=0,
        executables=["systemctl", "systemd-detect-virt", "snap", "dpkg"],
        files={"/etc/os-release": DEBIAN_OS_RELEASE},
        commands={
            ("systemctl", "is-system-running"): ProbeResult(0, "running\n"),
            ("systemd-detect-virt",): ProbeResult(0, "kvm\n"),
        },
    )


@pytest.fixture
def settings() -> InstallerSettings:
    return InstallerSettings(snap_core_retry_delay=0)


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    return AdapterRegistry(mock_adapter=mock_adapter)
