"""
Environment detection — distro family, init system, virtualization.

Read-only probes through a ``HostProbe``. None of these raise: a probe
that cannot answer is treated as a negative signal. Deciding whether a
result is fatal is the gatekeeper's job, not ours.
"""

from __future__ import annotations

import logging
import shlex

from snapflat.adapters.host import HostProbe
from snapflat.core.models.environment import (
    DistroFamily,
    InitSystem,
    VirtualizationContext,
    VirtualizationKind,
)

logger = logging.getLogger(__name__)

OS_RELEASE_PATH = "/etc/os-release"

# ── Virtualization signals (checked in this order) ──────────────

WSL_ENV_VARS = ("WSL_INTEROP", "WSL_DISTRO_NAME")
KERNEL_FILES = ("/proc/sys/kernel/osrelease", "/proc/version")
KERNEL_WSL_MARKER = "microsoft"

DETECT_VIRT = "systemd-detect-virt"

# systemd-detect-virt output → rejection. Anything not listed (none,
# kvm, vmware, oracle, ...) is a host or a VM and is accepted.
REJECTED_VIRT_TYPES: dict[str, VirtualizationKind] = {
    "wsl": VirtualizationKind.WSL,
    "docker": VirtualizationKind.CONTAINER,
    "lxc": VirtualizationKind.CONTAINER,
    "podman": VirtualizationKind.CONTAINER,
    "container": VirtualizationKind.CONTAINER,
    "containerd": VirtualizationKind.CONTAINER,
}

# Fallbacks when systemd-detect-virt is not installed
CONTAINER_MARKER_FILES: tuple[tuple[str, str], ...] = (
    ("/.dockerenv", "docker"),
    ("/run/.containerenv", "podman"),
)
CGROUP_PATH = "/proc/1/cgroup"
CGROUP_RUNTIME_MARKERS = ("docker", "kubepods", "containerd", "podman", "lxc")


# ── Distro family ────────────────────────────────────────────────


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines, unquoting values."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parts = shlex.split(raw)
        except ValueError:
            parts = [raw.strip().strip("'\"")]
        fields[key.strip()] = " ".join(parts)
    return fields


def detect_distro_family(host: HostProbe) -> DistroFamily:
    """Debian itself, or anything whose ID_LIKE mentions debian."""
    text = host.read_text(OS_RELEASE_PATH)
    if text is None:
        logger.debug("%s not readable", OS_RELEASE_PATH)
        return DistroFamily.UNKNOWN

    fields = parse_os_release(text)
    if fields.get("ID") == "debian":
        return DistroFamily.DEBIAN_LIKE
    if "debian" in fields.get("ID_LIKE", ""):
        return DistroFamily.DEBIAN_LIKE
    return DistroFamily.UNKNOWN


# ── Init system ──────────────────────────────────────────────────


def detect_init_system(host: HostProbe) -> InitSystem:
    """systemd counts only when systemctl exists and the system is running."""
    if host.which("systemctl") is None:
        return InitSystem.ABSENT
    if host.run(["systemctl", "is-system-running"]).ok:
        return InitSystem.SYSTEMD_RUNNING
    return InitSystem.ABSENT


# ── Virtualization ───────────────────────────────────────────────


def detect_virtualization_context(host: HostProbe) -> VirtualizationContext:
    """Classify the execution host. The first positive signal wins."""
    for var in WSL_ENV_VARS:
        if host.getenv(var):
            return VirtualizationContext.wsl(f"environment variable {var} is set")

    for path in KERNEL_FILES:
        text = host.read_text(path)
        if text is not None and KERNEL_WSL_MARKER in text.lower():
            return VirtualizationContext.wsl(f"{path} mentions Microsoft")

    if host.which(DETECT_VIRT) is not None:
        return _classify_detect_virt(host)

    return _container_heuristics(host)


def _classify_detect_virt(host: HostProbe) -> VirtualizationContext:
    # Exits non-zero when it prints "none"; only the word matters.
    virt_type = host.run([DETECT_VIRT]).stdout.strip()
    reason = f"{DETECT_VIRT} reported '{virt_type or 'nothing'}'"
    kind = REJECTED_VIRT_TYPES.get(virt_type)

    if kind == VirtualizationKind.WSL:
        return VirtualizationContext.wsl(reason)
    if kind == VirtualizationKind.CONTAINER:
        return VirtualizationContext.container(virt_type, reason)
    return VirtualizationContext.host(reason)


def _container_heuristics(host: HostProbe) -> VirtualizationContext:
    for path, runtime in CONTAINER_MARKER_FILES:
        if host.exists(path):
            return VirtualizationContext.container(runtime, f"{path} exists")

    cgroup = host.read_text(CGROUP_PATH)
    if cgroup is not None:
        lowered = cgroup.lower()
        for runtime in CGROUP_RUNTIME_MARKERS:
            if runtime in lowered:
                return VirtualizationContext.container(
                    runtime, f"{CGROUP_PATH} mentions {runtime}"
                )

    return VirtualizationContext.host("no container marker found")
