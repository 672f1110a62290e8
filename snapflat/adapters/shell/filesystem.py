"""
Filesystem adapter — the one file operation the installer performs.

Classic snaps expect ``/snap``; on Debian snapd mounts under
``/var/lib/snapd/snap``, so the installer links one to the other. Going
through an adapter lets the engine report and dry-run the link like any
command.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from snapflat.adapters.base import Adapter, ExecutionContext
from snapflat.core.models.action import Receipt, ReceiptStatus

logger = logging.getLogger(__name__)


class FilesystemAdapter(Adapter):
    """Action params:
        operation (str): 'symlink'.
        path (str): The link to create.
        source (str): The directory it points to.
    """

    name = "filesystem"
    required_params = ("operation", "path", "source")

    def validate(self, context: ExecutionContext) -> str:
        problem = super().validate(context)
        if problem:
            return problem
        operation = context.action.params["operation"]
        if operation != "symlink":
            return f"Unknown operation '{operation}'. Valid: symlink"
        return ""

    def execute(self, context: ExecutionContext) -> Receipt:
        target = Path(context.action.params["path"])
        source = Path(context.action.params["source"])

        # Never replace whatever is already there, link or not
        if os.path.lexists(target):
            return self.receipt(context, ReceiptStatus.SKIPPED, output=f"{target} already exists")
        if not source.is_dir():
            return self.receipt(context, ReceiptStatus.SKIPPED, output=f"{source} is not a directory")

        try:
            target.symlink_to(source)
        except OSError as e:
            return self.receipt(context, ReceiptStatus.FAILED, error=f"Filesystem error: {e}")
        logger.debug("Linked %s -> %s", target, source)
        return self.receipt(context, output=f"Linked {target} -> {source}")
