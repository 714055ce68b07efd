"""
Shared pytest fixtures for regiodata tests.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest

# Set test environment before importing application modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DISABLE_BACKGROUND_JOBS", "1")

from regiodata.config import Settings  # noqa: E402
from regiodata.services.indicator_store import IndicatorStore  # noqa: E402


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def test_environment():
    """Ensure test environment is set for all tests."""
    old_env = os.environ.copy()
    os.environ["ENVIRONMENT"] = "test"
    os.environ["DISABLE_BACKGROUND_JOBS"] = "1"
    yield
    os.environ.clear()
    os.environ.update(old_env)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        fetch_backoff_seconds=0.0,
        max_concurrent_resolutions=2,
        disable_background_jobs=True,
    )


@pytest.fixture
def store(tmp_path: Path) -> IndicatorStore:
    store = IndicatorStore(tmp_path / "regiodata-test.db")
    yield store
    store.close()
