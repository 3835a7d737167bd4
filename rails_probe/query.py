"""
A single configuration probe inside a batched runner.

A Query knows:
- its dotted key and derived tag
- how to render its own fragment of the batched script
- how to find its own line in the shared output

It never executes anything itself. Reading a result asks the Runner,
which executes the batch once on first access.
"""

from typing import TYPE_CHECKING, Optional

from .encoding import build_tag, find_value, has_line, validate_key
from .expressions import config_expression, render_fragment, validate_expression
from .models import ProbeResult

if TYPE_CHECKING:
    from .runner import Runner


class Query:
    """
    One probe bound to a Runner.

    Key, tag and expression are fixed at construction. Use
    Query.register (or Runner.detect) so the fragment is added to the
    runner's batch.

    Example:
        >>> runner = Runner()
        >>> storage = Query.register("active_storage.service", runner)
        >>> storage.command_fragment()  # doctest: +ELLIPSIS
        'begin; rails_probe_value = (Rails.application.config.try(:active_storage).try(:service)); ...'
    """

    def __init__(self, key: str, runner: "Runner", expression: Optional[str] = None):
        validate_key(key)
        self._key = key
        self._tag = build_tag(key, runner.settings.namespace)
        if expression is None:
            self._expression = config_expression(key)
        else:
            self._expression = validate_expression(expression)
        self._runner = runner

    @classmethod
    def register(
        cls,
        key: str,
        runner: "Runner",
        expression: Optional[str] = None,
    ) -> "Query":
        """
        Create a query and append its fragment to the runner.

        Raises:
            InvalidKeyError: If the key cannot be rendered safely
            DuplicateKeyError: If the key is already registered on the runner
            InvalidExpressionError: If a custom expression is unusable
            LateRegistrationError: If the runner has already executed
        """
        query = cls(key, runner, expression)
        runner._attach(query)
        return query

    @property
    def key(self) -> str:
        return self._key

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def runner(self) -> "Runner":
        return self._runner

    def command_fragment(self) -> str:
        """Ruby snippet that prints `tag=value`, or nothing if the probe fails."""
        return render_fragment(self._tag, self._expression)

    def succeeded(self) -> bool:
        """
        True if the batch exited successfully AND this probe printed a value.

        False distinguishes "no answer" from an answer; callers should treat
        it as unknown.
        """
        if not self._runner.succeeded():
            return False
        return find_value(self._runner.output(), self._tag) is not None

    def matches(self, expected: str) -> bool:
        """Exact, case-sensitive check for the line `tag=expected`."""
        return has_line(self._runner.output(), self._tag, expected)

    def value(self) -> Optional[str]:
        """The recovered value, or None unless succeeded()."""
        if not self.succeeded():
            return None
        return find_value(self._runner.output(), self._tag)

    def result(self) -> ProbeResult:
        succeeded = self.succeeded()
        return ProbeResult(
            key=self._key,
            tag=self._tag,
            succeeded=succeeded,
            value=find_value(self._runner.output(), self._tag) if succeeded else None,
        )

    def __repr__(self) -> str:
        return f"Query(key={self._key!r}, tag={self._tag!r})"
