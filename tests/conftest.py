"""Shared pytest configuration for marker registration, ordering and env isolation."""

from __future__ import annotations

import pytest

_RALPH_ENV_VARS = (
    "RALPH_TOOL",
    "RALPH_MAX_ITERATIONS",
    "RALPH_SLEEP_SECONDS",
    "RALPH_HOME",
    "RALPH_BRANCH_PREFIX",
    "AMP_BIN",
    "CLAUDE_BIN",
)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line("markers", "integration: filesystem/subprocess integration tests")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Run fast unit tests first, integration tests last."""

    def sort_key(item: pytest.Item) -> tuple[int, str]:
        if item.get_closest_marker("integration"):
            return (1, item.nodeid)
        return (0, item.nodeid)

    items.sort(key=sort_key)


@pytest.fixture(autouse=True)
def _clean_ralph_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's RALPH_* settings out of the tests."""
    for name in _RALPH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
