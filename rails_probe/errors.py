"""
Probe-specific error types.

All errors inherit from ProbeError for easy catching.

Only structural misuse is raised to the caller:
- a key that cannot be rendered into a safe fragment
- a registration that arrives after the batch has executed

Probe failures and process failures are NOT raised. They surface as
missing output lines and succeeded() == False.
"""

from typing import Optional


class ProbeError(Exception):
    """Base exception for all probe-related failures."""
    pass


class InvalidKeyError(ProbeError):
    """Raised when a query key is empty or cannot be rendered into a fragment."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid probe key {key!r}: {reason}")


class DuplicateKeyError(InvalidKeyError):
    """
    Raised when a key is registered twice on the same runner.

    Two queries with the same key share a tag, so only one of their
    results could ever be recovered from the combined output.
    """

    def __init__(self, key: str, tag: str):
        self.tag = tag
        super().__init__(key, f"tag '{tag}' is already registered on this runner")


class InvalidExpressionError(ProbeError):
    """Raised when a caller-supplied probe expression cannot be embedded."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Invalid probe expression {expression!r}: {reason}")


class LateRegistrationError(ProbeError):
    """
    Raised when a fragment is registered after the batch has executed.

    The composed command is frozen once it has run. Register every
    query before reading any result.
    """

    def __init__(self, fragment: str):
        self.fragment = fragment
        super().__init__(
            "Cannot register a probe after the batched command has executed"
        )


class CommandExecutionError(ProbeError):
    """
    Raised by executors when the command could not be run at all.

    Examples:
    - Shell or runner binary not found
    - Timeout exceeded

    The Runner catches this and records a failed result.
    """

    def __init__(self, command: str, reason: str, output: Optional[str] = None):
        self.command = command
        self.reason = reason
        self.output = output
        super().__init__(f"Failed to execute probe command: {reason}")
