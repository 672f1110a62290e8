"""
Adapter registry — dispatches install Actions to adapters.

Also where dry-run lives: in dry-run mode no adapter is consulted at
all, every Action comes back skipped with its command line.
"""

from __future__ import annotations

import logging
import time

from snapflat.adapters.base import Adapter, ExecutionContext
from snapflat.core.models.action import Action, Receipt, ReceiptStatus

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus an optional mock that takes every Action.

    Args:
        mock_adapter: When set, receives every Action regardless of
            ``Action.adapter``.
        timeout: Per-command timeout in seconds handed to adapters.
    """

    def __init__(self, mock_adapter: Adapter | None = None, timeout: float | None = None):
        self._adapters: dict[str, Adapter] = {}
        self._mock_adapter = mock_adapter
        self._timeout = timeout

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered adapter: %s", adapter.name)

    def execute_action(self, action: Action, dry_run: bool = False) -> Receipt:
        """Run ``action`` through its adapter. Never raises."""
        if dry_run:
            return Receipt.for_action(
                action,
                action.adapter,
                ReceiptStatus.SKIPPED,
                output=f"[dry-run] {action.describe()}",
                dry_run=True,
            )

        adapter = self._mock_adapter or self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.for_action(
                action,
                action.adapter,
                ReceiptStatus.FAILED,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(action=action, timeout=self._timeout)
        start = time.monotonic()

        try:
            problem = adapter.validate(context)
        except Exception as e:
            problem = f"Validation error: {e}"
        if problem:
            return Receipt.for_action(
                action, adapter.name, ReceiptStatus.FAILED, error=f"Validation failed: {problem}",
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during execution: %s", adapter.name, e)
            receipt = Receipt.for_action(
                action, adapter.name, ReceiptStatus.FAILED, error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt
