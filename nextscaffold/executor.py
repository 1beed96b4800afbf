"""External command execution.

:class:`CommandExecutor` runs one shell command at a time, captures its
output and converts every outcome into a :class:`CommandResult`.  Failures
are logged with full diagnostics through the injected structlog logger and
never raised.  :meth:`CommandExecutor.run_steps` chains commands for the
multi-step handlers and records exactly how far the chain got.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .models import FAILURE_MARK, SKIP_MARK, SUCCESS_MARK, CommandResult
from .utils import get_logger


class CommandExecutor:
    """Runs shell commands with stdin discarded and both streams captured."""

    def __init__(self, logger: Any = None, timeout: Optional[int] = None) -> None:
        self.log = logger if logger is not None else get_logger(__name__)
        self.timeout = timeout

    async def execute(self, command: str, cwd: str | Path, label: str = "") -> CommandResult:
        """Run *command* through the shell in *cwd*.

        Args:
            command: Shell command line.
            cwd: Working directory; a missing directory is reported as a failure.
            label: Short description used in log records.

        Returns:
            A :class:`CommandResult`.  ``success`` is ``True`` only for exit status 0.
        """
        label = label or command
        start = time.monotonic()
        self.log.info("command.start", label=label, command=command, cwd=str(cwd))

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd),
            )
        except OSError as exc:
            self.log.error(
                "command.spawn_failed",
                label=label,
                command=command,
                cwd=str(cwd),
                error=str(exc),
            )
            return CommandResult(success=False, output="", exit_code=-1, stderr=str(exc))

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            message = f"Command timed out after {self.timeout}s: {command}"
            self.log.error("command.timeout", label=label, command=command, timeout=self.timeout)
            return CommandResult(success=False, output="", exit_code=-1, stderr=message)

        stdout = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
        stderr = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
        exit_code = process.returncode if process.returncode is not None else -1
        duration = round(time.monotonic() - start, 2)

        if exit_code != 0:
            self.log.error(
                "command.failed",
                label=label,
                command=command,
                cwd=str(cwd),
                exit_code=exit_code,
                stdout=stdout,
                stderr=stderr,
                duration=duration,
            )
            return CommandResult(success=False, output=stdout, exit_code=exit_code, stderr=stderr)

        self.log.info("command.succeeded", label=label, exit_code=exit_code, duration=duration)
        return CommandResult(success=True, output=stdout, exit_code=exit_code, stderr=stderr)

    async def run_steps(
        self,
        steps: list[tuple[str, str]],
        cwd: str | Path,
        *,
        skip: bool = False,
    ) -> "StepReport":
        """Run ``(label, command)`` steps in order, stopping at the first failure.

        With *skip* set nothing is executed and every step is left pending so
        the report lists all commands for manual execution.
        """
        report = StepReport(steps=list(steps), skipped=skip)
        if skip:
            return report
        for label, command in steps:
            result = await self.execute(command, cwd, label=label)
            if not result.success:
                report.failed = (label, command, result)
                break
            report.completed.append(label)
        return report


# ---------------------------------------------------------------------------
# Multi-step bookkeeping
# ---------------------------------------------------------------------------


@dataclass
class StepReport:
    """How far a chain of dependent commands progressed."""

    steps: list[tuple[str, str]]
    skipped: bool = False
    completed: list[str] = field(default_factory=list)
    failed: Optional[tuple[str, str, CommandResult]] = None

    @property
    def succeeded(self) -> bool:
        """True when every step ran and exited cleanly."""
        return not self.skipped and self.failed is None and len(self.completed) == len(self.steps)

    @property
    def pending(self) -> list[tuple[str, str]]:
        """Steps that did not complete, starting with the failed one."""
        return self.steps[len(self.completed):]

    def resume_commands(self) -> list[str]:
        """Commands the user must run to finish the chain."""
        return [command for _, command in self.pending]

    def lines(self) -> list[str]:
        """One status line per step."""
        rendered: list[str] = []
        for index, (label, command) in enumerate(self.steps):
            if self.skipped:
                rendered.append(f"{SKIP_MARK} {label} skipped: `{command}`")
            elif index < len(self.completed):
                rendered.append(f"{SUCCESS_MARK} {label}")
            elif self.failed is not None and index == len(self.completed):
                detail = self.failed[2].combined_output.strip().splitlines()
                tail = f": {detail[-1]}" if detail else ""
                rendered.append(f"{FAILURE_MARK} {label} failed (`{command}`){tail}")
            else:
                rendered.append(f"{SKIP_MARK} {label} not run")
        return rendered
