"""
Tests for command executors.

SubprocessExecutor is tested with a mocked subprocess.run, plus a few
real shell invocations that only need `echo` and `sleep`.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from rails_probe import (
    CommandExecutionError,
    ProbeSettings,
    Query,
    RecordingExecutor,
    Runner,
    SubprocessExecutor,
)
from rails_probe.runner import EXECUTION_ERROR_RETURNCODE


def completed(stdout="", stderr="", returncode=0):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


class TestSubprocessExecutor:
    def test_run_success(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=12))

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed(stdout="ns.a.b=local\n")
            result = executor.run("rails runner 'puts 1'")

        assert result.succeeded
        assert result.output == "ns.a.b=local\n"
        assert result.command == "rails runner 'puts 1'"

        args, kwargs = mock_run.call_args
        assert args == ("rails runner 'puts 1'",)
        assert kwargs["shell"] is True
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        assert kwargs["timeout"] == 12

    def test_run_non_zero_exit_is_a_result(self):
        executor = SubprocessExecutor(ProbeSettings())

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed(stderr="boot failed", returncode=1)
            result = executor.run("rails runner ''")

        assert not result.succeeded
        assert result.returncode == 1
        assert result.stderr == "boot failed"
        assert result.output == ""

    def test_user_env_layered_over_os_environ(self, monkeypatch):
        monkeypatch.setenv("RAILS_PROBE_TEST_BASE", "base")
        monkeypatch.setenv("RAILS_ENV", "development")
        settings = ProbeSettings(user_env={"RAILS_ENV": "production", "SECRET_KEY_BASE": "x"})
        executor = SubprocessExecutor(settings)

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            executor.run("true")

        env = mock_run.call_args.kwargs["env"]
        assert env["RAILS_PROBE_TEST_BASE"] == "base"
        assert env["RAILS_ENV"] == "production"
        assert env["SECRET_KEY_BASE"] == "x"

    def test_cwd_passed_through(self):
        executor = SubprocessExecutor(ProbeSettings(cwd="/app"))

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.return_value = completed()
            executor.run("true")

        assert mock_run.call_args.kwargs["cwd"] == "/app"

    def test_timeout_raises_execution_error(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=1))

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            # subprocess attaches captured bytes even in text mode
            mock_run.side_effect = subprocess.TimeoutExpired("cmd", 1, output=b"ns.a.b=1\n")
            with pytest.raises(CommandExecutionError) as exc_info:
                executor.run("cmd")

        assert "timed out" in exc_info.value.reason
        assert exc_info.value.output == "ns.a.b=1\n"
        assert exc_info.value.command == "cmd"

    def test_timeout_without_output(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=1))

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired("cmd", 1)
            with pytest.raises(CommandExecutionError) as exc_info:
                executor.run("cmd")

        assert exc_info.value.output is None

    def test_timeout_undecodable_output_replaced(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=1))

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired("cmd", 1, output=b"ns.a.b=\xff\n")
            with pytest.raises(CommandExecutionError) as exc_info:
                executor.run("cmd")

        assert exc_info.value.output == "ns.a.b=\ufffd\n"

    @pytest.mark.integration
    def test_real_timeout_keeps_partial_output(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=1))

        with pytest.raises(CommandExecutionError) as exc_info:
            executor.run("echo ns.a.b=local; sleep 3")

        assert exc_info.value.output == "ns.a.b=local\n"

    @pytest.mark.integration
    def test_runner_sees_lines_printed_before_timeout(self):
        settings = ProbeSettings(namespace="ns", runner_command="sh -c", timeout_seconds=1)
        runner = Runner(executor=SubprocessExecutor(settings), settings=settings)
        runner.register("echo ns.a.b=local; sleep 3", tag="ns.a.b")
        ab = Query("a.b", runner)

        assert runner.succeeded() is False
        assert runner.execute().returncode == EXECUTION_ERROR_RETURNCODE
        assert runner.output() == "ns.a.b=local\n"
        assert ab.matches("local") is True
        assert ab.succeeded() is False

    def test_os_error_raises_execution_error(self):
        executor = SubprocessExecutor(ProbeSettings(cwd="/does/not/exist"))

        with patch("rails_probe.executor.subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("No such file or directory: '/does/not/exist'")
            with pytest.raises(CommandExecutionError):
                executor.run("true")

    @pytest.mark.integration
    def test_real_shell_invocation(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=10))

        result = executor.run("echo ns.a.b=local; echo oops 1>&2")

        assert result.succeeded
        assert result.output == "ns.a.b=local\n"
        assert "oops" in result.stderr

    @pytest.mark.integration
    def test_real_shell_exit_status(self):
        executor = SubprocessExecutor(ProbeSettings(timeout_seconds=10))

        result = executor.run("echo partial; exit 3")

        assert result.returncode == 3
        assert result.output == "partial\n"


class TestRecordingExecutor:
    def test_records_commands(self):
        executor = RecordingExecutor(output="x=1\n", returncode=0)

        first = executor.run("one")
        executor.run("two")

        assert executor.commands == ["one", "two"]
        assert executor.call_count == 2
        assert first.output == "x=1\n"
        assert first.succeeded

    def test_raises_configured_error(self):
        error = CommandExecutionError("one", "not found")
        executor = RecordingExecutor(error=error)

        with pytest.raises(CommandExecutionError):
            executor.run("one")
        assert executor.call_count == 1
