"""Top-level pytest configuration and shared fixtures for the study tracker.

Environment variables are set at the top of this module *before* any
study_tracker imports so that the cached ``Settings`` never points the app
lifespan at the working directory's ``data/subjects.json``.

Fixture hierarchy
-----------------
json_store      → JSONStore on a temporary file (empty document)
seeded_store    → JSONStore pre-populated with ``sample_subjects()``
fake_client     → FakeStoreClient seeded with ``sample_subjects()``
cache           → LocalCache loaded with ``sample_subjects()``
test_client     → FastAPI TestClient whose store dependency is *json_store*
"""

from __future__ import annotations

import os
import tempfile

# ---------------------------------------------------------------------------
# Set environment variables BEFORE any study_tracker imports.
# ---------------------------------------------------------------------------
os.environ.setdefault(
    "DATA_FILE", os.path.join(tempfile.mkdtemp(prefix="study-tracker-"), "subjects.json")
)
os.environ.setdefault("LOG_LEVEL", "WARNING")

from pathlib import Path
from typing import Iterator

import pytest

from study_tracker.models.tracker_config import StoreDocument
from study_tracker.services.json_store import JSONStore
from study_tracker.services.local_cache import LocalCache
from tests.fixtures.fake_store import FakeStoreClient
from tests.fixtures.sample_subjects import SAMPLE_CONFIG, sample_subjects


# ---------------------------------------------------------------------------
# Persistence fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "subjects.json"


@pytest.fixture
def json_store(data_file: Path) -> JSONStore:
    """Provide a JSONStore whose data file exists and holds an empty document."""
    store = JSONStore(data_file)
    store.ensure_exists()
    return store


@pytest.fixture
def seeded_store(json_store: JSONStore) -> JSONStore:
    """Provide a JSONStore holding the two sample subjects and SAMPLE_CONFIG."""
    json_store._write(StoreDocument(config=SAMPLE_CONFIG, subjects=sample_subjects()))
    return json_store


# ---------------------------------------------------------------------------
# Client-side fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_client() -> FakeStoreClient:
    """Provide an in-memory Remote Store seeded with the sample subjects."""
    return FakeStoreClient(sample_subjects(), SAMPLE_CONFIG)


@pytest.fixture
def cache() -> LocalCache:
    """Provide a LocalCache loaded with the sample subjects, ``sub-fr`` active."""
    local = LocalCache()
    local.replace_all(sample_subjects(), SAMPLE_CONFIG)
    local.select("sub-fr")
    return local


# ---------------------------------------------------------------------------
# FastAPI TestClient with overridden dependencies
# ---------------------------------------------------------------------------


@pytest.fixture
def test_client(json_store: JSONStore) -> Iterator:
    """Provide a FastAPI TestClient backed by *json_store*.

    The ``get_store`` dependency is overridden and ``app.state.store`` is
    replaced after startup so that both the routers and ``/health`` see the
    temporary store.  Overrides are cleared after the test completes.

    Yields:
        A ``starlette.testclient.TestClient`` bound to the FastAPI app.
    """
    from fastapi.testclient import TestClient

    from study_tracker.api.dependencies import get_store
    from study_tracker.main import app

    app.dependency_overrides[get_store] = lambda: json_store

    with TestClient(app) as client:
        app.state.store = json_store
        yield client

    app.dependency_overrides.clear()
