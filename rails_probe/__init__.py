"""
Batched configuration probes for Rails applications.

Many config lookups are composed into a single `rails runner`
invocation so the application boots only once.

Usage:
    from rails_probe import Runner

    runner = Runner()
    storage = runner.detect("active_storage.service")
    compile_assets = runner.detect("assets.compile")

    if storage.succeeded() and storage.matches("local"):
        ...
"""

from .errors import (
    ProbeError,
    InvalidKeyError,
    DuplicateKeyError,
    InvalidExpressionError,
    LateRegistrationError,
    CommandExecutionError,
)
from .models import (
    CommandResult,
    ProbeResult,
    RunnerState,
)
from .encoding import (
    DEFAULT_NAMESPACE,
    build_tag,
    encode_line,
    find_value,
    has_line,
    validate_key,
)
from .expressions import (
    config_expression,
    render_fragment,
)
from .settings import ProbeSettings
from .executor import (
    CommandExecutor,
    SubprocessExecutor,
    RecordingExecutor,
)
from .query import Query
from .runner import Runner

__all__ = [
    # Errors
    "ProbeError",
    "InvalidKeyError",
    "DuplicateKeyError",
    "InvalidExpressionError",
    "LateRegistrationError",
    "CommandExecutionError",
    # Models
    "CommandResult",
    "ProbeResult",
    "RunnerState",
    # Encoding
    "DEFAULT_NAMESPACE",
    "build_tag",
    "encode_line",
    "find_value",
    "has_line",
    "validate_key",
    # Expressions
    "config_expression",
    "render_fragment",
    # Configuration
    "ProbeSettings",
    # Executors
    "CommandExecutor",
    "SubprocessExecutor",
    "RecordingExecutor",
    # Core
    "Query",
    "Runner",
]
