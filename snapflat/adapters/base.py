"""
Adapter base — how the installation engine reaches apt, snap and flatpak.

The engine never runs a command itself. It hands an Action to the
registry, which picks the adapter named by ``Action.adapter``, checks
the Action's params and lets the adapter perform it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict

from snapflat.core.models.action import Action, Receipt, ReceiptStatus


class ExecutionContext(BaseModel):
    """An Action plus the limits it runs under."""

    model_config = ConfigDict(frozen=True)

    action: Action
    timeout: float | None = None    # seconds; None waits forever


class Adapter(ABC):
    """Performs one kind of Action and answers with a Receipt.

    ``execute`` must not raise: a failed command is a failed Receipt.
    """

    name: str = ""
    required_params: tuple[str, ...] = ()

    def validate(self, context: ExecutionContext) -> str:
        """Why the Action cannot run, or ``""`` when it can."""
        for param in self.required_params:
            if not context.action.params.get(param):
                return f"Missing required param: '{param}'"
        return ""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Perform the Action."""

    def receipt(
        self,
        context: ExecutionContext,
        status: ReceiptStatus = ReceiptStatus.OK,
        **fields: Any,
    ) -> Receipt:
        return Receipt.for_action(context.action, self.name, status, **fields)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
