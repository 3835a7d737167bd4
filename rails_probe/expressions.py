"""
Ruby snippets embedded into the batched `rails runner` script.

Nothing here is evaluated in Python. Expressions are inert strings
handed to the Rails process.
"""

from typing import Optional

from .encoding import validate_key
from .errors import InvalidExpressionError

RAILS_CONFIG_ROOT = "Rails.application.config"

# Local variable used inside each fragment's rescue boundary
_VALUE_VAR = "rails_probe_value"


def config_expression(key: str) -> str:
    """
    Build a nil-safe config lookup for a dotted key.

    Example:
        >>> config_expression("active_storage.service")
        'Rails.application.config.try(:active_storage).try(:service)'
    """
    validate_key(key)
    parts = [RAILS_CONFIG_ROOT]
    for segment in key.split("."):
        parts.append(f".try(:{segment})")
    return "".join(parts)


def validate_expression(expression: Optional[str]) -> str:
    """Reject expressions that would break the one-line script body."""
    if not isinstance(expression, str):
        raise InvalidExpressionError(repr(expression), "expression must be a string")
    if not expression.strip():
        raise InvalidExpressionError(expression, "expression cannot be empty")
    if "\n" in expression or "\r" in expression:
        raise InvalidExpressionError(expression, "expression cannot contain newlines")
    return expression


def render_fragment(tag: str, expression: str) -> str:
    """
    Wrap one probe in its own error boundary.

    The fragment prints `tag=value` only for a non-nil value. Any
    StandardError or ScriptError (a failed `require`, NotImplementedError)
    raised by the expression is rescued locally so the remaining fragments
    still run. Syntax errors in a custom expression break the whole script.
    """
    return (
        f"begin; {_VALUE_VAR} = ({expression}); "
        f'puts "{tag}=" + {_VALUE_VAR}.to_s.tr("\\r\\n", "  ") '
        f"unless {_VALUE_VAR}.nil?; "
        f"rescue StandardError, ScriptError; end;"
    )
