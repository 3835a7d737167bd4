"""
Pytest configuration for the rails_probe test suite.
"""

import pytest

from rails_probe import ProbeSettings, RecordingExecutor, Runner


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that spawn real processes"
    )
    config.addinivalue_line(
        "markers", "ruby: marks tests that require a ruby interpreter in PATH"
    )


@pytest.fixture
def settings() -> ProbeSettings:
    """Settings with a short namespace so expected lines stay readable."""
    return ProbeSettings(namespace="ns")


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def runner(executor, settings) -> Runner:
    return Runner(executor=executor, settings=settings)
