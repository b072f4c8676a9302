"""Test fixtures: in-memory and SQLite stores, registry wiring and the API client."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from prompt_ledger.core.locks import KeyedLock
from prompt_ledger.core.registry import PromptRegistry
from prompt_ledger.core.vcs import VersionControl
from prompt_ledger.db.client import SQLClient
from prompt_ledger.db.memory import InMemoryClient


@pytest.fixture
def mock_db() -> InMemoryClient:
    """Fresh in-memory store for each test."""
    return InMemoryClient()


@pytest.fixture
def sql_db(tmp_path) -> SQLClient:
    """SQLite-backed store in a temporary file."""
    client = SQLClient.from_url(f"sqlite:///{tmp_path / 'ledger.db'}")
    client.create_tables()
    yield client
    client.close()


@pytest.fixture(params=["memory", "sql"])
def any_db(request):
    """Runs a test against both storage implementations."""
    return request.getfixturevalue("mock_db" if request.param == "memory" else "sql_db")


@pytest.fixture
def registry(mock_db) -> PromptRegistry:
    return PromptRegistry(mock_db, KeyedLock())


@pytest.fixture
def vcs(registry) -> VersionControl:
    return VersionControl(registry)


@pytest.fixture
def sample_content() -> str:
    """Sample prompt content."""
    return (
        "You are a senior code reviewer.\n"
        "You excel at Python and security.\n"
        "Be concise."
    )


@pytest.fixture
def app(registry, vcs):
    """FastAPI test app with the store swapped for the in-memory one."""
    from prompt_ledger.core.registry import get_registry
    from prompt_ledger.core.vcs import get_vcs
    from prompt_ledger.main import app as _app

    _app.dependency_overrides[get_registry] = lambda: registry
    _app.dependency_overrides[get_vcs] = lambda: vcs

    yield _app

    _app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """HTTP test client."""
    return TestClient(app)
