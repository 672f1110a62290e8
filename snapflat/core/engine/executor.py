"""
Installation engine — the mutating phase that runs after the gate.

Takes the ResolvedConfig, builds an ordered InstallPlan of steps and
executes them through the adapter registry, collecting receipts.

Flow:
    config → build plan → execute steps in order → InstallReport

Step semantics:
    - a step holds one or more alternative actions: the first that
      does not fail wins (package fallback chains)
    - a required step that fails stops the run
    - a best-effort step that fails is logged and the run continues
    - a step may be retried a fixed number of times after a delay
    - a step may carry a runtime precondition; when it does not hold
      the step is skipped with a warning
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from snapflat.adapters.host import HostProbe
from snapflat.adapters.registry import AdapterRegistry
from snapflat.core.models.action import Action, Receipt
from snapflat.core.models.options import ResolvedConfig
from snapflat.core.models.settings import InstallerSettings

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


@dataclass
class Step:
    """One line of the installation sequence."""

    id: str
    title: str
    actions: list[Action] = field(default_factory=list)
    required: bool = True
    retries: int = 0
    retry_delay: float = 0.0
    skip_reason: str = ""
    when: Callable[[], bool] | None = None
    unmet_reason: str = ""


@dataclass
class InstallPlan:
    steps: list[Step] = field(default_factory=list)

    @property
    def step_ids(self) -> list[str]:
        return [s.id for s in self.steps]

    def get(self, step_id: str) -> Step | None:
        return next((s for s in self.steps if s.id == step_id), None)


@dataclass
class InstallReport:
    """Result of executing a plan."""

    receipts: list[Receipt] = field(default_factory=list)
    aborted_at: str | None = None
    dry_run: bool = False

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def status(self) -> str:
        return "failed" if self.aborted_at else "ok"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "aborted_at": self.aborted_at,
            "dry_run": self.dry_run,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


# ── Planning ─────────────────────────────────────────────────────


def _apt(step_id: str, *args: str) -> Action:
    return Action(
        id=step_id,
        adapter="shell",
        params={"command": ["apt-get", *args], "env": dict(APT_ENV)},
    )


def _apt_install(step_id: str, packages: list[str], no_recommends: bool = True) -> Action:
    flags = ["install", "-y"] + (["--no-install-recommends"] if no_recommends else [])
    return _apt(step_id, *flags, *packages)


def _cmd(step_id: str, *command: str) -> Action:
    return Action(id=step_id, adapter="shell", params={"command": list(command)})


def _chain(step_id: str, chains: list[list[str]]) -> list[Action]:
    return [
        _apt_install(f"{step_id}:{n}", packages, no_recommends=False)
        for n, packages in enumerate(chains, start=1)
    ]


def build_install_plan(
    config: ResolvedConfig,
    settings: InstallerSettings,
    host: HostProbe,
) -> InstallPlan:
    """Turn the resolved configuration into the ordered install sequence."""
    plan = InstallPlan()
    add = plan.steps.append
    skip_update = "Skip requested: not running 'apt-get update && apt-get upgrade'" if config.skip_update else ""

    # ── Package index ────────────────────────────────────────────
    add(Step("apt-update", "Updating package lists", [_apt("apt-update", "update", "-y")],
             skip_reason=skip_update))
    add(Step("apt-upgrade", "Installing upgrades", [_apt("apt-upgrade", "upgrade", "-y")],
             skip_reason=skip_update))
    add(Step("base-deps", "Installing base dependencies",
             [_apt_install("base-deps", settings.base_packages)]))

    # ── Snap ─────────────────────────────────────────────────────
    add(Step("snapd", "Installing Snap (snapd)", [_apt_install("snapd", ["snapd"])]))

    no_systemd = "" if config.init_system_available else "systemd is not running"
    add(Step("snapd-socket", "Enabling snapd.socket",
             [_cmd("snapd-socket", "systemctl", "enable", "--now", "snapd.socket")],
             skip_reason=no_systemd))
    add(Step("snapd-service", "Enabling snapd.service",
             [_cmd("snapd-service", "systemctl", "enable", "--now", "snapd.service")],
             required=False, skip_reason=no_systemd))

    add(Step("snap-classic", f"Creating {settings.snap_link} symlink (classic support)",
             [Action(id="snap-classic", adapter="filesystem", params={
                 "operation": "symlink",
                 "path": settings.snap_link,
                 "source": settings.snap_mount_dir,
             })],
             required=False))

    # A freshly installed snapd may still be seeding: one retry, then carry on to Flatpak
    add(Step("snap-core","Initializing Snap (installing core)",
             [_cmd("snap-core", "snap", "install", "core")],
             required=False, retries=1, retry_delay=settings.snap_core_retry_delay,
             when=lambda: host.which("snap") is not None,
             unmet_reason="'snap' command not available after installation; check that snapd is running"))

    # ── Flatpak ──────────────────────────────────────────────────
    remote = settings.flathub_remote
    add(Step("flatpak", "Installing Flatpak", [_apt_install("flatpak", ["flatpak"])]))
    add(Step("flathub-add", "Adding Flathub (system-wide)",
             [_cmd("flathub-add", "flatpak", "--system", "remote-add", "--if-not-exists",
                   remote, settings.flathub_url)]))
    add(Step("flathub-enable", "Enabling Flathub",
             [_cmd("flathub-enable", "flatpak", "--system", "remote-modify", "--enable", remote)],
             required=False))
    add(Step("flatpak-update", "Refreshing Flatpak metadata",
             [_cmd("flatpak-update", "flatpak", "--system", "update", "-y")],
             required=False))

    # ── GUI stores ───────────────────────────────────────────────
    if config.install_gnome_software:
        add(Step("gnome-software", "Installing GNOME Software (+ Flatpak plugin)",
                 _chain("gnome-software", settings.gnome_software_packages)))
    if config.install_kde_discover:
        add(Step("kde-discover", "Installing KDE Discover (+ Flatpak backend)",
                 _chain("kde-discover", settings.kde_discover_packages)))

    return plan


# ── Execution ────────────────────────────────────────────────────


def _run_step(
    step: Step,
    registry: AdapterRegistry,
    dry_run: bool,
    sleep: Callable[[float], None],
) -> Receipt:
    receipt: Receipt | None = None
    for attempt in range(step.retries + 1):
        if attempt:
            logger.info("Retrying %s in %.0fs...", step.id, step.retry_delay)
            sleep(step.retry_delay)
        for action in step.actions:
            receipt = registry.execute_action(action, dry_run=dry_run)
            if not receipt.failed:
                return receipt
            logger.debug("%s failed: %s", action.id, receipt.error)
    assert receipt is not None
    return receipt


def execute_plan(
    plan: InstallPlan,
    registry: AdapterRegistry,
    dry_run: bool = False,
    on_step: Callable[[Step], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> InstallReport:
    """Execute the plan's steps in order.

    Args:
        plan: The install plan.
        registry: Adapter registry for dispatch.
        dry_run: If True, report every action without running it.
        on_step: Called with each step before it runs.
        sleep: Used between retries.

    Returns:
        InstallReport with one receipt per step that was reached.
    """
    report = InstallReport(dry_run=dry_run)

    for step in plan.steps:
        if step.skip_reason:
            logger.info("%s: skipped (%s)", step.title, step.skip_reason)
            report.receipts.append(Receipt.step_skipped(step.id, step.skip_reason))
            continue

        if step.when is not None and not dry_run and not step.when():
            logger.warning("%s: skipped (%s)", step.title, step.unmet_reason)
            report.receipts.append(Receipt.step_skipped(step.id, step.unmet_reason))
            continue

        if on_step:
            on_step(step)

        receipt = _run_step(step, registry, dry_run, sleep)
        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.debug("%s %s → %s", status_marker, step.id, receipt.status)

        if receipt.failed:
            if step.required:
                logger.error("%s failed: %s", step.title, receipt.error)
                report.aborted_at = step.id
                break
            logger.warning("%s failed (continuing): %s", step.title, receipt.error)

    return report


def default_registry(settings: InstallerSettings) -> AdapterRegistry:
    """Registry with the shell and filesystem adapters."""
    from snapflat.adapters.shell.command import ShellCommandAdapter
    from snapflat.adapters.shell.filesystem import FilesystemAdapter

    registry = AdapterRegistry(timeout=settings.command_timeout)
    registry.register(ShellCommandAdapter())
    registry.register(FilesystemAdapter())
    return registry
