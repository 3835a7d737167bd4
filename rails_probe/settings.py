"""
ProbeSettings: how the batched probe command is built and run.

Settings are immutable. Environment variable overrides are optional:

    RAILS_PROBE_NAMESPACE   tag namespace
    RAILS_PROBE_COMMAND     runner entry point (default: "rails runner")
    RAILS_PROBE_TIMEOUT     timeout in seconds
    RAILS_PROBE_CWD         working directory of the Rails app
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from .encoding import DEFAULT_NAMESPACE, validate_key

logger = logging.getLogger(__name__)

ENV_NAMESPACE = "RAILS_PROBE_NAMESPACE"
ENV_COMMAND = "RAILS_PROBE_COMMAND"
ENV_TIMEOUT = "RAILS_PROBE_TIMEOUT"
ENV_CWD = "RAILS_PROBE_CWD"

DEFAULT_RUNNER_COMMAND = "rails runner"

# Booting a large app can be slow; the executor enforces this limit
DEFAULT_TIMEOUT_SECONDS = 300.0


@dataclass(frozen=True)
class ProbeSettings:
    """
    Immutable probe configuration.

    Attributes:
        namespace: Prefix for every output tag
        runner_command: Command that executes a Ruby script body
        timeout_seconds: Hard limit for the one batched invocation
        cwd: Working directory for the process (None = current directory)
        user_env: Extra environment variables layered over os.environ
    """

    namespace: str = DEFAULT_NAMESPACE
    runner_command: str = DEFAULT_RUNNER_COMMAND
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    cwd: Optional[str] = None
    user_env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        validate_key(self.namespace)
        if not self.runner_command.strip():
            raise ValueError("runner_command cannot be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

    def with_user_env(self, env: Mapping[str, str]) -> "ProbeSettings":
        """Return a copy with `env` merged over the current user_env."""
        merged: Dict[str, str] = dict(self.user_env)
        merged.update(env)
        return replace(self, user_env=merged)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProbeSettings":
        """
        Build settings from RAILS_PROBE_* environment variables.

        Unset variables keep their defaults. An unparseable timeout is
        logged and ignored.

        Raises:
            InvalidKeyError: If RAILS_PROBE_NAMESPACE is not a dotted identifier
        """
        environ = os.environ if environ is None else environ
        kwargs: Dict[str, object] = {}

        namespace = environ.get(ENV_NAMESPACE)
        if namespace:
            kwargs["namespace"] = namespace.strip()

        command = environ.get(ENV_COMMAND)
        if command and command.strip():
            kwargs["runner_command"] = command.strip()

        timeout = environ.get(ENV_TIMEOUT)
        if timeout:
            try:
                value = float(timeout)
                if value <= 0:
                    raise ValueError(timeout)
                kwargs["timeout_seconds"] = value
            except ValueError:
                logger.warning(
                    f"Ignoring invalid {ENV_TIMEOUT}={timeout!r}; "
                    f"using {DEFAULT_TIMEOUT_SECONDS}s"
                )

        cwd = environ.get(ENV_CWD)
        if cwd:
            kwargs["cwd"] = cwd

        return cls(**kwargs)
