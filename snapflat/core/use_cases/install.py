"""
Install use case — from argument list to installed Snap and Flathub.

This is the top-level orchestrator: it parses arguments, loads
settings, runs the gatekeeper and, once the gate says ready, plans
and executes the installation. Relaunching under sudo is reported
back to the caller, never performed here.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from snapflat.adapters.host import HostProbe
from snapflat.adapters.registry import AdapterRegistry
from snapflat.core.config.loader import load_settings
from snapflat.core.engine.executor import (
    InstallPlan,
    InstallReport,
    Step,
    build_install_plan,
    default_registry,
    execute_plan,
)
from snapflat.core.models.settings import InstallerSettings
from snapflat.core.services.gate import Gatekeeper, GateOutcome, GateStatus, parse_options

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of one invocation."""

    outcome: GateOutcome
    plan: InstallPlan | None = None
    report: InstallReport | None = None

    @property
    def ok(self) -> bool:
        return self.report is None or self.report.status == "ok"


def run_install(
    args: Sequence[str],
    host: HostProbe,
    settings: InstallerSettings | None = None,
    registry: AdapterRegistry | None = None,
    on_step: Callable[[Step], None] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> InstallResult:
    """Gate, then install.

    Args:
        args: Command-line arguments (without the program name).
        host: Host probe binding.
        settings: Pre-loaded settings. If None, loaded from the
            settings file (after the help check).
        registry: Optional pre-configured adapter registry.
        on_step: Progress callback, called before each step runs.
        sleep: Used between retries (default: time.sleep).

    Returns:
        InstallResult. ``outcome.status`` tells whether anything ran.

    Raises:
        GateError: Any gate failure, or an invalid settings file.
    """
    parsed = parse_options(args)
    if parsed.help_requested:
        return InstallResult(outcome=GateOutcome(status=GateStatus.HELP, parsed=parsed))

    if settings is None:
        settings = load_settings()

    outcome = Gatekeeper(host, settings).gate_parsed(parsed)
    result = InstallResult(outcome=outcome)
    if outcome.status != GateStatus.READY:
        return result

    assert outcome.config is not None
    logger.debug("Gate outcome: %s", outcome.to_dict())

    plan = build_install_plan(outcome.config, settings, host)
    result.plan = plan

    if registry is None:
        registry = default_registry(settings)

    result.report = execute_plan(
        plan,
        registry,
        dry_run=settings.dry_run,
        on_step=on_step,
        sleep=sleep or time.sleep,
    )
    logger.debug("Install report: %s", result.report.to_dict())
    return result
