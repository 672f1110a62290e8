"""
Actions and receipts — what the installer asks for and what it got back.

An Action is one concrete command (or file operation) that an install
step wants performed. Adapters answer every Action with a Receipt, also
on failure: nothing in the install phase raises past an adapter.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReceiptStatus(StrEnum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class Action(BaseModel):
    """One command or file operation of an install step.

    ``id`` is the step id, suffixed ``:<n>`` for the n-th alternative
    of a package fallback chain.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    adapter: str                    # "shell" or "filesystem"
    params: dict[str, Any] = Field(default_factory=dict)

    def describe(self) -> str:
        """Printable form: the command line, or ``<operation> <path>``."""
        command = self.params.get("command")
        if command:
            return " ".join(command)
        operation = self.params.get("operation")
        if operation:
            return f"{operation} {self.params.get('path', '')}".strip()
        return f"{self.adapter}:{self.id}"


class Receipt(BaseModel):
    """What happened to one Action (or to a step that never ran)."""

    action_id: str
    adapter: str
    status: ReceiptStatus = ReceiptStatus.OK

    command: str = ""               # Action.describe() of what was attempted
    output: str = ""                # stdout tail, or the reason for a skip
    error: str | None = None        # stderr tail, or what went wrong
    return_code: int | None = None  # shell commands only
    duration_ms: int = 0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status == ReceiptStatus.OK

    @property
    def failed(self) -> bool:
        return self.status == ReceiptStatus.FAILED

    @property
    def skipped(self) -> bool:
        return self.status == ReceiptStatus.SKIPPED

    @classmethod
    def for_action(
        cls,
        action: Action,
        adapter: str,
        status: ReceiptStatus = ReceiptStatus.OK,
        **fields: Any,
    ) -> Receipt:
        return cls(
            action_id=action.id,
            adapter=adapter,
            status=status,
            command=action.describe(),
            **fields,
        )

    @classmethod
    def step_skipped(cls, step_id: str, reason: str) -> Receipt:
        """A step the engine decided not to run at all."""
        return cls(action_id=step_id, adapter="engine", status=ReceiptStatus.SKIPPED, output=reason)
