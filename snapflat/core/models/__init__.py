"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from snapflat.core.models import RequestedOptions, ResolvedConfig, Receipt
"""

from snapflat.core.models.action import Action, Receipt, ReceiptStatus
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

__all__ = [
    # action.py
    "Action",
    # environment.py
    "DetectedStore",
    "DistroFamily",
    "EnvironmentFacts",
    "InitSystem",
    # settings.py
    "InstallerSettings",
    # options.py
    "ParsedArgs",
    "PrivilegeLevel",
    "Receipt",
    "ReceiptStatus",
    "RequestedOptions",
    "ResolvedConfig",
    "VirtualizationContext",
    "VirtualizationKind",
]
