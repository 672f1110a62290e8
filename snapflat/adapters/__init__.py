"""Adapters — bindings to the host and to the package-manager tools.

Public re-exports for convenient access.
"""

from snapflat.adapters.base import Adapter, ExecutionContext
from snapflat.adapters.host import HostProbe, ProbeResult, SystemHost
from snapflat.adapters.mock import FakeHost, MockAdapter
from snapflat.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "FakeHost",
    "HostProbe",
    "MockAdapter",
    "ProbeResult",
    "SystemHost",
]
