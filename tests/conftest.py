"""Shared pytest fixtures for Cairn tests."""

import pytest

from cairn.database.db import configure_engine, init_db
from cairn.tracker import ProgressTracker


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def tracker():
    """Fresh ProgressTracker with default settings."""
    return ProgressTracker()
