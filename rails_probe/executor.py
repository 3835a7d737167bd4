"""
Command executors.

The Runner never spawns processes itself. It hands the composed
command string to an executor and gets back a CommandResult.

Executors:
- SubprocessExecutor: real shell invocation (production)
- RecordingExecutor: canned output, records every call (tests, dry runs)

Contract:
- A process that ran and exited non-zero is a normal CommandResult
- A process that could not be started or timed out raises
  CommandExecutionError
"""

import logging
import os
import subprocess
import time
from typing import Dict, List, Optional, Protocol

from .errors import CommandExecutionError
from .models import CommandResult
from .settings import ProbeSettings

logger = logging.getLogger(__name__)


class CommandExecutor(Protocol):
    """Run a command string under the caller's environment."""

    def run(self, command: str) -> CommandResult: ...


class SubprocessExecutor:
    """
    Run commands through the system shell.

    The environment is os.environ overlaid with settings.user_env.
    stdout is returned as the result output; stderr is kept separately.
    """

    def __init__(self, settings: Optional[ProbeSettings] = None):
        self.settings = settings or ProbeSettings()

    def _build_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(self.settings.user_env)
        return env

    def run(self, command: str) -> CommandResult:
        """
        Execute the command and wait for it to finish.

        Raises:
            CommandExecutionError: If the shell cannot be started or the
                command exceeds settings.timeout_seconds
        """
        started = time.monotonic()
        try:
            completed = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=self.settings.cwd,
                env=self._build_env(),
                timeout=self.settings.timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            # TimeoutExpired carries bytes even when text=True
            partial = e.stdout
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            raise CommandExecutionError(
                command,
                f"timed out after {self.settings.timeout_seconds}s",
                output=partial,
            )
        except OSError as e:
            raise CommandExecutionError(command, str(e))

        duration_ms = int((time.monotonic() - started) * 1000)

        if completed.stderr:
            logger.debug(f"Probe command stderr: {completed.stderr.strip()}")

        return CommandResult(
            command=command,
            output=completed.stdout or "",
            returncode=completed.returncode,
            stderr=completed.stderr or "",
            duration_ms=duration_ms,
        )


class RecordingExecutor:
    """
    Deterministic executor returning canned output.

    Every command is recorded so callers can assert what would have run
    and how many times.
    """

    def __init__(
        self,
        output: str = "",
        returncode: int = 0,
        stderr: str = "",
        error: Optional[CommandExecutionError] = None,
    ):
        self.output = output
        self.returncode = returncode
        self.stderr = stderr
        self.error = error
        self.commands: List[str] = []

    @property
    def call_count(self) -> int:
        """Number of times run() was invoked."""
        return len(self.commands)

    def run(self, command: str) -> CommandResult:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        return CommandResult(
            command=command,
            output=self.output,
            returncode=self.returncode,
            stderr=self.stderr,
        )
