"""Shared test fixtures for bookmarksync."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bookmarksync.config import Settings
from bookmarksync.database import init_db
from bookmarksync.services.bookmark_store import BookmarkStore
from bookmarksync.services.sync_service import SyncOrchestrator
from bookmarksync.webdav.authenticator import WebDavAuthenticator
from tests.fakes import FakeClock, FakeRemote, FakeScheduler, InMemoryKeyValueStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Sync-enabled settings with temporary paths."""
    db_path = tmp_path / "test.db"
    return Settings(
        _env_file=None,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        sync_enabled=True,
        webdav_url="https://dav.example.com/remote.php/webdav",
        webdav_username="alice",
        webdav_password="secret",
        sync_path="/bookmarks/",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler(clock: FakeClock) -> FakeScheduler:
    return FakeScheduler(clock)


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
async def store(kv_store: InMemoryKeyValueStore, clock: FakeClock) -> BookmarkStore:
    bookmark_store = BookmarkStore(kv_store, clock)
    await bookmark_store.load()
    return bookmark_store


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def authenticator() -> WebDavAuthenticator:
    return WebDavAuthenticator()


@pytest.fixture
def orchestrator(
    store: BookmarkStore,
    test_settings: Settings,
    clock: FakeClock,
    scheduler: FakeScheduler,
    authenticator: WebDavAuthenticator,
    remote: FakeRemote,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        store,
        test_settings,
        clock=clock,
        scheduler=scheduler,
        authenticator=authenticator,
        client_factory=remote.factory,
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine with tables."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
