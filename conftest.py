"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "security: Security-critical tests (tamper detection, secrets)",
    )
    config.addinivalue_line(
        "markers",
        "integration: End-to-end tests touching the filesystem",
    )
    config.addinivalue_line(
        "markers",
        "asyncio: Async tests",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics_cache() -> Generator[None, None, None]:
    """Reset the diagnostics module cache before each test.

    The diagnostics module caches the `internal_logging_enabled` setting
    at first access, so tests that toggle it through the environment would
    otherwise inherit the value seen by an earlier test.
    """
    import chainlog.core.diagnostics as diag

    diag._internal_logging_enabled = None
    yield
    diag._internal_logging_enabled = None


@pytest.fixture(autouse=True)
def _isolated_context() -> Generator[None, None, None]:
    """Start every test without bound audit context."""
    from chainlog.context import clear_context

    clear_context()
    yield
    clear_context()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "audit.log"


@pytest.fixture
def head_path(store_path: Path) -> Path:
    return store_path.with_name(store_path.name + ".head")
