"""
Shell command adapter — run package-manager commands.

This is the adapter that does the installing: every apt-get, systemctl,
snap and flatpak invocation goes through here and comes back as a
Receipt.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess

from snapflat.adapters.base import Adapter, ExecutionContext
from snapflat.core.models.action import Receipt, ReceiptStatus

logger = logging.getLogger(__name__)

_OUTPUT_TAIL = 2000


class ShellCommandAdapter(Adapter):
    """Execute a command (argv list, no shell) and capture output.

    Action params:
        command (list[str]): The argv to execute.
        env (dict[str, str]): Extra environment variables.
    """

    name = "shell"
    required_params = ("command",)

    def validate(self, context: ExecutionContext) -> str:
        problem = super().validate(context)
        if problem:
            return problem
        command = context.action.params["command"]
        if not isinstance(command, list) or not all(isinstance(c, str) for c in command):
            return "Param 'command' must be a list of strings"
        if shutil.which(command[0]) is None and not os.path.isabs(command[0]):
            return f"Command not found: {command[0]}"
        return ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command: list[str] = context.action.params["command"]
        env = os.environ.copy()
        env.update(context.action.params.get("env") or {})
        logger.debug("Executing: %s", " ".join(command))

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=context.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired:
            return self.receipt(
                context, ReceiptStatus.FAILED, error=f"Command timed out after {context.timeout}s",
            )
        except OSError as e:
            return self.receipt(context, ReceiptStatus.FAILED, error=f"Command execution error: {e}")

        stdout = result.stdout.strip()[-_OUTPUT_TAIL:]
        stderr = result.stderr.strip()[-_OUTPUT_TAIL:]
        if result.returncode == 0:
            return self.receipt(context, output=stdout, return_code=0)
        return self.receipt(
            context,
            ReceiptStatus.FAILED,
            output=stdout,
            error=stderr or f"Command exited with code {result.returncode}",
            return_code=result.returncode,
        )
