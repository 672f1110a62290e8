"""
Environment facts — what the gatekeeper learns about the host.

Each fact is discovered once at startup, in a fixed order, and never
recomputed during a run.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class PrivilegeLevel(StrEnum):
    """How the current process can act on the system."""

    ROOT = "root"
    SUDO_CAPABLE = "sudo_capable"


class DistroFamily(StrEnum):
    """Result of the /etc/os-release check."""

    DEBIAN_LIKE = "debian_like"
    UNKNOWN = "unknown"


class InitSystem(StrEnum):
    """Whether a running systemd can enable services."""

    SYSTEMD_RUNNING = "systemd_running"
    ABSENT = "absent"


class DetectedStore(StrEnum):
    """GUI store found already installed on the host."""

    NONE = "none"
    GNOME_SOFTWARE = "gnome_software"
    KDE_DISCOVER = "kde_discover"


class VirtualizationKind(StrEnum):
    """Coarse execution host classification."""

    BARE_METAL_OR_VM = "bare_metal_or_vm"
    WSL = "wsl"
    CONTAINER = "container"


class VirtualizationContext(BaseModel):
    """Where the process runs, and which signal said so."""

    model_config = ConfigDict(frozen=True)

    kind: VirtualizationKind = VirtualizationKind.BARE_METAL_OR_VM
    container_kind: str | None = None   # docker, lxc, podman, ... (container only)
    reason: str = ""                    # first signal that matched

    @property
    def supported(self) -> bool:
        """Installation may only proceed on a host or a VM."""
        return self.kind == VirtualizationKind.BARE_METAL_OR_VM

    @classmethod
    def host(cls, reason: str = "") -> VirtualizationContext:
        return cls(kind=VirtualizationKind.BARE_METAL_OR_VM, reason=reason)

    @classmethod
    def wsl(cls, reason: str) -> VirtualizationContext:
        return cls(kind=VirtualizationKind.WSL, reason=reason)

    @classmethod
    def container(cls, container_kind: str, reason: str) -> VirtualizationContext:
        return cls(
            kind=VirtualizationKind.CONTAINER,
            container_kind=container_kind,
            reason=reason,
        )


class EnvironmentFacts(BaseModel):
    """Everything the gate discovered, for reporting."""

    model_config = ConfigDict(frozen=True)

    privilege: PrivilegeLevel
    virtualization: VirtualizationContext
    distro: DistroFamily
    detected_store: DetectedStore
    init_system: InitSystem
