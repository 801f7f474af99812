"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like a temp DB and a scripted LLM.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("LLM_API_KEY", "fake-llm-key-for-tests")
os.environ.setdefault("LLM_PROVIDER", "anthropic")
os.environ.setdefault("API_TOKENS", "token-alice:alice,token-bob:bob")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "")

import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_second_brain.db")


@pytest.fixture
def entry_db(tmp_db_path):
    """Return an EntryDB instance backed by a temp file."""
    from src.data.db import EntryDB
    return EntryDB(db_path=tmp_db_path)


@pytest.fixture
def fake_llm():
    """An LLMClient stand-in; set `fake_llm.complete.return_value` per test."""
    from src.core.llm import LLMClient
    llm = MagicMock(spec=LLMClient)
    llm.complete = AsyncMock(return_value="")
    return llm


@pytest.fixture
def settings(tmp_db_path):
    from src.config import Settings
    return Settings(
        LLM_API_KEY="fake-llm-key-for-tests",
        DATABASE_PATH=tmp_db_path,
        API_TOKENS="token-alice:alice,token-bob:bob",
    )


@pytest.fixture
def maps():
    """A configured GoogleMapsClient whose get_distance is an AsyncMock."""
    from src.integrations.google_maps import GoogleMapsClient
    client = GoogleMapsClient(api_key="fake-maps-key")
    client.get_distance = AsyncMock()
    return client


@pytest.fixture
def client(settings, entry_db, fake_llm, maps):
    """FastAPI TestClient wired to the temp DB and the scripted LLM."""
    from fastapi.testclient import TestClient
    from src.api.app import create_app
    app = create_app(settings, entry_db=entry_db, llm=fake_llm, maps=maps)
    return TestClient(app)
