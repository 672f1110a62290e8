"""
Environment gatekeeper — decide whether installation may proceed.

Flow (every step runs once, in this order):

    parse args → privilege → virtualization → distro → store → init system

Terminal outcomes:
    help      usage printed, nothing probed               (exit 0)
    relaunch  not root but sudo works: re-run under sudo   (exit 0 here)
    ready     ResolvedConfig handed to the installer
Failures raise a GateError subclass and end the run.

The gatekeeper has no side effects besides probes and log output.
Re-executing under sudo is left to the caller, so the whole state
machine can be tested against a FakeHost.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from snapflat.adapters.host import HostProbe
from snapflat.core.errors import ConfigError, PrivilegeError, UnsupportedEnvironment
from snapflat.core.models.environment import (
    DetectedStore,
    DistroFamily,
    EnvironmentFacts,
    InitSystem,
    PrivilegeLevel,
    VirtualizationContext,
    VirtualizationKind,
)
from snapflat.core.models.options import ParsedArgs, RequestedOptions, ResolvedConfig
from snapflat.core.models.settings import InstallerSettings
from snapflat.core.services.detection import (
    detect_distro_family,
    detect_init_system,
    detect_virtualization_context,
)

logger = logging.getLogger(__name__)

PROG = "snapflat"

USAGE = f"""\
Usage:
  sudo {PROG} [--skip-update]
  sudo {PROG} --gnome-software [--skip-update]
  sudo {PROG} --kde-discover [--skip-update]

Installs Snap (snapd) and Flatpak with the Flathub remote on Debian and
Debian-based distributions.

Options:
  --gnome-software  Install GNOME Software (+ Flatpak plugin) as a GUI store
  --kde-discover    Install KDE Discover (+ Flatpak backend) as a GUI store
  --skip-update     Skip the initial 'apt-get update && apt-get upgrade'
  -h, --help        Show this message and exit

--gnome-software and --kde-discover are optional and mutually exclusive.
Without either, an already installed store is detected and completed.

When not run as root, the command re-runs itself under sudo. Root must be
able to start it: install system-wide, with pipx or in a virtualenv, not
with 'pip install --user'.
"""

# Command-line flag → RequestedOptions field
_FLAG_FIELDS: dict[str, str] = {
    "--gnome-software": "install_gnome_software",
    "--kde-discover": "install_kde_discover",
    "--skip-update": "skip_update",
}
_HELP_FLAGS = frozenset({"-h", "--help"})


def parse_options(args: Sequence[str]) -> ParsedArgs:
    """Parse the argument list left to right.

    Raises:
        ConfigError: On an unknown argument, or when both GUI stores
            are requested.
    """
    argv = tuple(args)
    flags: dict[str, bool] = {}

    for arg in argv:
        if arg in _HELP_FLAGS:
            return ParsedArgs(help_requested=True, argv=argv)
        field_name = _FLAG_FIELDS.get(arg)
        if field_name is None:
            raise ConfigError(f"Unknown argument: {arg}", hint=f"Run '{PROG} --help' for usage.")
        flags[field_name] = True

    options = RequestedOptions(**flags)
    if options.install_gnome_software and options.install_kde_discover:
        raise ConfigError(
            "You cannot use --gnome-software and --kde-discover together.",
            hint="Choose only one GUI store.",
        )
    return ParsedArgs(options=options, argv=argv)


def relaunch_command(
    args: Sequence[str],
    executable: str | None = None,
    script: str | None = None,
) -> list[str]:
    """The argv that re-runs this invocation under sudo.

    An installed ``snapflat`` console script (``script``, default
    ``sys.argv[0]``) is re-run by its absolute path, so a pipx or
    virtualenv install keeps its own interpreter. Otherwise the current
    interpreter runs ``-m snapflat``.
    """
    script = sys.argv[0] if script is None else script
    if script and os.path.basename(script) == PROG and os.path.isfile(script):
        return ["sudo", os.path.abspath(script), *args]
    return ["sudo", executable or sys.executable, "-m", PROG, *args]


class GateStatus(StrEnum):
    HELP = "help"
    RELAUNCH = "relaunch"
    READY = "ready"


@dataclass
class GateOutcome:
    """Result of ``Gatekeeper.gate``."""

    status: GateStatus
    parsed: ParsedArgs
    config: ResolvedConfig | None = None
    facts: EnvironmentFacts | None = None
    relaunch_argv: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result: dict = {"status": self.status.value}
        if self.config:
            result["config"] = self.config.model_dump(mode="json")
        if self.facts:
            result["facts"] = self.facts.model_dump(mode="json")
        if self.relaunch_argv:
            result["relaunch_argv"] = self.relaunch_argv
        return result


class Gatekeeper:
    """Compute the environment facts and turn them into a go/no-go.

    Args:
        host: Probe binding (SystemHost in production).
        settings: Package names used for store detection.
        executable: Python interpreter used for the sudo relaunch.
        script: Path this process was started from (default sys.argv[0]).
    """

    def __init__(
        self,
        host: HostProbe,
        settings: InstallerSettings | None = None,
        executable: str | None = None,
        script: str | None = None,
    ):
        self.host = host
        self.settings = settings or InstallerSettings()
        self.executable = executable
        self.script = script

    # ── Privilege ────────────────────────────────────────────────

    def ensure_privilege(self) -> PrivilegeLevel:
        """Root passes. Otherwise sudo must exist and accept us.

        Returns SUDO_CAPABLE when the caller must relaunch under sudo.
        Being root already short-circuits, so a relaunched process
        never tries to escalate again.
        """
        if self.host.effective_uid() == 0:
            return PrivilegeLevel.ROOT

        if self.host.which("sudo") is None:
            raise PrivilegeError(
                "Installing Snap/Flatpak requires admin privileges, but 'sudo' is not available.",
                hint="Run as root or install/configure sudo, then re-run.",
            )

        logger.info("Checking sudo permissions (required to install)...")
        if not self.host.run(["sudo", "-v"], interactive=True).ok:
            raise PrivilegeError(
                "You don't have sudo permissions (or authentication failed).",
                hint="Installing packages requires sudo privileges. "
                "Add the user to sudoers and try again.",
            )
        return PrivilegeLevel.SUDO_CAPABLE

    # ── Environment ──────────────────────────────────────────────

    def check_virtualization(self) -> VirtualizationContext:
        """Abort on WSL and containers; hosts and VMs pass."""
        context = detect_virtualization_context(self.host)
        logger.debug("Virtualization: %s (%s)", context.kind, context.reason)
        if context.supported:
            return context

        if context.kind == VirtualizationKind.WSL:
            raise UnsupportedEnvironment(
                f"This installer must NOT be run on WSL ({context.reason}).",
                hint="Run it on a Debian (or Debian-based) host or VM.",
            )
        raise UnsupportedEnvironment(
            f"This installer must NOT be run inside a container "
            f"({context.container_kind}: {context.reason}).",
            hint="Run it on a host or on a Debian/Debian-based VM.",
        )

    def check_distro(self) -> DistroFamily:
        distro = detect_distro_family(self.host)
        if distro != DistroFamily.DEBIAN_LIKE:
            logger.warning(
                "This doesn't look like a Debian/Debian-based distro "
                "(/etc/os-release check). Trying anyway with apt..."
            )
        return distro

    def check_init_system(self) -> InitSystem:
        init = detect_init_system(self.host)
        if init == InitSystem.ABSENT:
            logger.warning(
                "systemd doesn't seem to be running here; snapd services will not be enabled. "
                "If Snap doesn't work, enable snapd manually or reboot."
            )
        return init

    # ── Store selection ──────────────────────────────────────────

    def package_installed(self, package: str) -> bool:
        return self.host.run(["dpkg", "-s", package]).ok

    def resolve_store_selection(
        self, options: RequestedOptions,
    ) -> tuple[RequestedOptions, DetectedStore]:
        """Fill in a store from what is installed, if none was requested.

        GNOME Software is checked before KDE Discover.
        """
        if options.store_selected:
            return options, DetectedStore.NONE

        if any(self.package_installed(p) for p in self.settings.gnome_software_markers):
            logger.info("Detected GNOME Software already installed: its plugins will be installed.")
            return (
                options.model_copy(update={"install_gnome_software": True}),
                DetectedStore.GNOME_SOFTWARE,
            )

        if any(self.package_installed(p) for p in self.settings.kde_discover_markers):
            logger.info("Detected KDE Discover already installed: its backends will be installed.")
            return (
                options.model_copy(update={"install_kde_discover": True}),
                DetectedStore.KDE_DISCOVER,
            )

        logger.info(
            "No GUI store chosen (--gnome-software/--kde-discover) and none detected as "
            "installed. Snap/Flatpak/Flathub will still be installed; re-run with one of "
            "the two options if you want a store."
        )
        return options, DetectedStore.NONE

    # ── Orchestration ────────────────────────────────────────────

    def gate(self, args: Sequence[str]) -> GateOutcome:
        """Run every check in order and return the outcome.

        Raises:
            ConfigError, PrivilegeError, UnsupportedEnvironment
        """
        return self.gate_parsed(parse_options(args))

    def gate_parsed(self, parsed: ParsedArgs) -> GateOutcome:
        """Same as ``gate``, for arguments that were already parsed."""
        if parsed.help_requested:
            return GateOutcome(status=GateStatus.HELP, parsed=parsed)

        privilege = self.ensure_privilege()
        if privilege != PrivilegeLevel.ROOT:
            return GateOutcome(
                status=GateStatus.RELAUNCH,
                parsed=parsed,
                relaunch_argv=relaunch_command(parsed.argv, self.executable, self.script),
            )

        virtualization = self.check_virtualization()
        distro = self.check_distro()
        options, detected = self.resolve_store_selection(parsed.options)
        init = self.check_init_system()

        config = ResolvedConfig(
            install_gnome_software=options.install_gnome_software,
            install_kde_discover=options.install_kde_discover,
            skip_update=options.skip_update,
            init_system_available=init == InitSystem.SYSTEMD_RUNNING,
        )
        facts = EnvironmentFacts(
            privilege=privilege,
            virtualization=virtualization,
            distro=distro,
            detected_store=detected,
            init_system=init,
        )
        return GateOutcome(status=GateStatus.READY, parsed=parsed, config=config, facts=facts)
