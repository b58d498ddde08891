from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from backend.app.dependencies import (
    SessionIdentity,
    get_identity,
    get_settings,
    get_todo_store,
)
from backend.app.main import app
from inbox_intel.config.settings import Settings
from inbox_intel.storage.todos import FileTodoStore

USER_EMAIL = "me@example.com"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        secrets_dir=tmp_path / "secrets",
        state_dir=tmp_path / "state",
        openai_api_key="sk-test",
        todo_store="file",
    )


@pytest.fixture
def store(settings: Settings) -> FileTodoStore:
    return FileTodoStore(settings.todo_file_path)


@pytest.fixture
def anonymous_client(settings: Settings, store: FileTodoStore) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_todo_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(anonymous_client: TestClient) -> TestClient:
    app.dependency_overrides[get_identity] = lambda: SessionIdentity(
        email=USER_EMAIL,
        access_token="ya29.test-token",
    )
    return anonymous_client
