"""
InstallerSettings — tunables loaded from the optional settings file.

Every field has a default, so a host without a settings file installs
exactly what the built-in plan describes.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

FLATHUB_URL = "https://flathub.org/repo/flathub.flatpakrepo"


def _gnome_chains() -> list[list[str]]:
    return [
        ["gnome-software", "gnome-software-plugin-flatpak", "gnome-software-plugin-snap"],
        ["gnome-software", "gnome-software-plugin-flatpak"],
        ["gnome-software"],
    ]


def _kde_chains() -> list[list[str]]:
    # Debian ships plasma-discover; some derivatives still call it discover.
    return [
        ["plasma-discover", "plasma-discover-backend-flatpak", "plasma-discover-backend-snap"],
        ["discover", "plasma-discover-backend-flatpak", "plasma-discover-backend-snap"],
        ["plasma-discover", "plasma-discover-backend-flatpak"],
        ["discover", "plasma-discover-backend-flatpak"],
        ["plasma-discover"],
        ["discover"],
    ]


class InstallerSettings(BaseModel):
    """Settings for detection and the installation plan."""

    # ── Flathub ──────────────────────────────────────────────────
    flathub_remote: str = "flathub"
    flathub_url: str = FLATHUB_URL

    # ── Packages ─────────────────────────────────────────────────
    base_packages: list[str] = Field(
        default_factory=lambda: ["ca-certificates", "curl", "gnupg"],
    )
    gnome_software_packages: list[list[str]] = Field(
        default_factory=_gnome_chains, min_length=1,
    )
    kde_discover_packages: list[list[str]] = Field(
        default_factory=_kde_chains, min_length=1,
    )

    # Packages whose presence means a store is already installed
    gnome_software_markers: list[str] = Field(default_factory=lambda: ["gnome-software"])
    kde_discover_markers: list[str] = Field(
        default_factory=lambda: ["plasma-discover", "discover"],
    )

    # ── Snap ─────────────────────────────────────────────────────
    snap_link: str = "/snap"
    snap_mount_dir: str = "/var/lib/snapd/snap"
    snap_core_retry_delay: float = Field(default=2.0, ge=0)

    # ── Execution ────────────────────────────────────────────────
    command_timeout: int = Field(default=1800, gt=0)
    dry_run: bool = False
