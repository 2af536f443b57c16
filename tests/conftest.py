from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from gatekeeper.config import get_settings
from gatekeeper.main import app, get_vector_store


@pytest.fixture(autouse=True)
def reset_caches() -> Iterator[None]:
    get_settings.cache_clear()
    get_vector_store.cache_clear()
    yield
    get_settings.cache_clear()
    get_vector_store.cache_clear()


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[TestClient]:
    monkeypatch.setenv("GATEKEEPER_INDEX_DIR", str(tmp_path / "index"))
    monkeypatch.setenv("GATEKEEPER_EMBED_PROVIDER", "hash")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
