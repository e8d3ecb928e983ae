"""Shared test fixtures."""

from pathlib import Path

import pytest

from subreddit_insights.config import Settings
from subreddit_insights.storage import SqliteKeyValueStore


@pytest.fixture
def kv(tmp_path: Path) -> SqliteKeyValueStore:
    """A key-value store backed by a temporary SQLite file."""
    return SqliteKeyValueStore(db_path=tmp_path / "test.db")


@pytest.fixture
def app_settings() -> Settings:
    """Settings with no seed credentials, independent of the environment."""
    return Settings()
