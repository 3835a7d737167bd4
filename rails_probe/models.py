"""
Probe data models.

All models use Pydantic for validation.
Unknown fields are rejected.
Missing values are explicitly represented as None.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class RunnerState(str, Enum):
    """
    Runner lifecycle.

    COLLECTING: fragments may still be registered
    EXECUTED:   the batched command ran; output and status are fixed
    """

    COLLECTING = "collecting"
    EXECUTED = "executed"


class CommandResult(BaseModel):
    """
    Outcome of one external command invocation.

    Only stdout is parsed for results. stderr is kept for diagnostics.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    command: str
    output: str = ""
    returncode: int
    stderr: str = ""
    duration_ms: int = 0

    @field_validator("duration_ms")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        """Duration cannot be negative."""
        if v < 0:
            raise ValueError("duration_ms must be non-negative")
        return v

    @property
    def succeeded(self) -> bool:
        """True when the process exited with status 0."""
        return self.returncode == 0

    def summary(self) -> str:
        """One-line description for logs."""
        status = "OK" if self.succeeded else f"FAILED (exit {self.returncode})"
        return f"{status} in {self.duration_ms}ms"


class ProbeResult(BaseModel):
    """Per-query answer recovered from the combined output."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    tag: str
    succeeded: bool
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON output."""
        return {
            "key": self.key,
            "tag": self.tag,
            "succeeded": self.succeeded,
            "value": self.value,
        }
