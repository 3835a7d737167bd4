"""
Batched `rails runner` execution.

Booting a Rails app is expensive. Instead of one boot per config
lookup, queries are registered up front and composed into ONE script:

    runner = Runner()
    local_storage = runner.detect("active_storage.service")
    assets_compile = runner.detect("assets.compile")

    local_storage.succeeded()           # => True   (batch runs here)
    local_storage.matches("local")      # => False
    assets_compile.matches("false")     # => True   (no second run)

Lifecycle:
    COLLECTING  register() / detect() append fragments
    EXECUTED    output() / succeeded() read the cached result

The transition happens once, on first read, under a lock.
There is no way back to COLLECTING.
"""

import logging
import shlex
import threading
from typing import Dict, List, Optional, Set, Tuple

from .errors import CommandExecutionError, DuplicateKeyError, LateRegistrationError
from .executor import CommandExecutor, SubprocessExecutor
from .models import CommandResult, ProbeResult, RunnerState
from .query import Query
from .settings import ProbeSettings

logger = logging.getLogger(__name__)

# Return code recorded when the executor could not run the command at all
EXECUTION_ERROR_RETURNCODE = -1


class Runner:
    """
    Owns the fragments of one batched command and its single execution.

    The executor is invoked at most once per Runner, even when the
    invocation fails.
    """

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        settings: Optional[ProbeSettings] = None,
    ):
        """
        Args:
            executor: Runs the composed command. Defaults to a
                SubprocessExecutor using the same settings.
            settings: Defaults to ProbeSettings.from_env().
        """
        self.settings = settings or ProbeSettings.from_env()
        self.executor = executor or SubprocessExecutor(self.settings)

        self._fragments: List[str] = []
        self._tags: Set[str] = set()
        self._queries: List[Query] = []
        self._result: Optional[CommandResult] = None
        self._state = RunnerState.COLLECTING
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, fragment: str, tag: Optional[str] = None) -> None:
        """
        Append a command fragment to the batch.

        Args:
            fragment: Self-delimited script snippet
            tag: Output tag the fragment prints, checked for collisions

        Raises:
            LateRegistrationError: If the batch has already executed
            DuplicateKeyError: If tag is already registered
        """
        with self._lock:
            self._append(fragment, tag)

    def detect(self, key: str, expression: Optional[str] = None) -> Query:
        """Register a probe for a dotted config key and return its Query."""
        return Query.register(key, self, expression)

    def _attach(self, query: Query) -> None:
        """Append a query's fragment and keep the query for results()."""
        with self._lock:
            self._append(query.command_fragment(), query.tag, key=query.key)
            self._queries.append(query)

    def _append(self, fragment: str, tag: Optional[str], key: Optional[str] = None) -> None:
        # Caller holds self._lock
        if self._state is RunnerState.EXECUTED:
            raise LateRegistrationError(fragment)
        if tag is not None:
            if tag in self._tags:
                raise DuplicateKeyError(key or tag, tag)
            self._tags.add(tag)
        self._fragments.append(fragment)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    @property
    def fragments(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._fragments)

    @property
    def queries(self) -> Tuple[Query, ...]:
        with self._lock:
            return tuple(self._queries)

    def composed_command(self) -> str:
        """
        Join all fragments, in registration order, into one command.

        The script body is shell-quoted as a single argument, e.g.:
            rails runner 'begin; ...; rescue StandardError, ScriptError; end; begin; ...'
        """
        with self._lock:
            return self._compose()

    def _compose(self) -> str:
        script = " ".join(self._fragments)
        return f"{self.settings.runner_command} {shlex.quote(script)}"

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunnerState:
        with self._lock:
            return self._state

    @property
    def executed(self) -> bool:
        return self.state is RunnerState.EXECUTED

    def execute(self) -> CommandResult:
        """
        Run the batched command if it has not run yet.

        Idempotent: later calls return the cached result without invoking
        the executor again, whether or not the first invocation succeeded.
        Concurrent first callers block until the single run completes.
        """
        with self._lock:
            if self._state is RunnerState.COLLECTING:
                self._result = self._invoke()
                self._state = RunnerState.EXECUTED
            return self._result

    def _invoke(self) -> CommandResult:
        # Caller holds self._lock
        command = self._compose()
        count = len(self._fragments)

        if count == 0:
            logger.warning("Executing probe batch with no registered fragments")

        logger.info(f"Executing batched probe command ({count} fragments)")
        logger.debug(f"Probe command: {command}")

        try:
            result = self.executor.run(command)
        except CommandExecutionError as e:
            logger.warning(f"Probe command could not be executed: {e.reason}")
            return CommandResult(
                command=command,
                output=e.output or "",
                returncode=EXECUTION_ERROR_RETURNCODE,
                stderr=e.reason,
            )

        if result.succeeded:
            logger.info(f"Probe batch finished: {result.summary()}")
        else:
            logger.warning(f"Probe batch failed: {result.summary()}")
        return result

    def output(self) -> str:
        """Captured stdout of the batch, executing it first if needed."""
        return self.execute().output

    def succeeded(self) -> bool:
        """Whether the batch process exited successfully, executing it first if needed."""
        return self.execute().succeeded

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def results(self) -> Dict[str, ProbeResult]:
        """Per-key results for every query registered through this runner."""
        return {query.key: query.result() for query in self.queries}

    def __repr__(self) -> str:
        return (
            f"Runner(state={self._state.value}, "
            f"fragments={len(self._fragments)})"
        )
