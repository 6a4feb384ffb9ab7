"""
Shared fixtures: an app wired to in-memory repositories and a TestClient.

The lifespan never runs (the client is not used as a context manager), so
no database pool is opened.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from contacts import router as contacts_router
from content_types import router as content_types_router
from core.config import Settings
from main import create_app
from media import router as media_router
from posts import router as posts_router
from site_settings import router as settings_router
from tags import router as tags_router

from fakes import (
    FakeDatabase,
    InMemoryContactRepository,
    InMemoryContentTypeRepository,
    InMemoryMediaRepository,
    InMemoryPostRepository,
    InMemorySettingRepository,
    InMemoryTagRepository,
    Store,
)


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def app(store: Store):
    app = create_app(Settings(app_env="test", debug=False), database=FakeDatabase())
    app.dependency_overrides[content_types_router.get_repository] = lambda: InMemoryContentTypeRepository(store)
    app.dependency_overrides[posts_router.get_repository] = lambda: InMemoryPostRepository(store)
    app.dependency_overrides[media_router.get_repository] = lambda: InMemoryMediaRepository(store)
    app.dependency_overrides[tags_router.get_repository] = lambda: InMemoryTagRepository(store)
    app.dependency_overrides[contacts_router.get_repository] = lambda: InMemoryContactRepository(store)
    app.dependency_overrides[settings_router.get_repository] = lambda: InMemorySettingRepository(store)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
