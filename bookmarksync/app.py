"""Application wiring: builds and connects the bookmark components."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url

from bookmarksync.database import create_engine, init_db
from bookmarksync.services.bookmark_service import BookmarkManager
from bookmarksync.services.bookmark_store import BookmarkStore
from bookmarksync.services.kv_store import SqlKeyValueStore
from bookmarksync.services.scheduler import AsyncioScheduler, SystemClock
from bookmarksync.services.sync_service import SyncOrchestrator
from bookmarksync.webdav.authenticator import WebDavAuthenticator

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from bookmarksync.config import Settings
    from bookmarksync.services.scheduler import Clock

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Configure application logging."""
    level = logging.DEBUG if debug else logging.INFO
    fmt = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=fmt,
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)


def ensure_database_dir(database_url: str) -> None:
    """Create the parent directory of a file-based SQLite database."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite") or not url.database or url.database == ":memory:":
        return
    parent = Path(url.database).parent
    if not parent.exists():
        logger.info("Creating database directory at %s", parent)
        parent.mkdir(parents=True)


@dataclass
class BookmarkSyncApp:
    """The wired set of components; pass it (or its parts) to consumers."""

    settings: Settings
    engine: AsyncEngine
    store: BookmarkStore
    orchestrator: SyncOrchestrator
    manager: BookmarkManager
    scheduler: AsyncioScheduler

    async def close(self) -> None:
        """Drop pending auto syncs, wait for running ones and release the database."""
        self.orchestrator.cancel_pending()
        await self.scheduler.aclose()
        await self.engine.dispose()


async def create_app(settings: Settings, *, clock: Clock | None = None) -> BookmarkSyncApp:
    """Build all components, create tables and load the local store."""
    clock = clock or SystemClock()
    ensure_database_dir(settings.database_url)
    engine, session_factory = create_engine(settings)
    await init_db(engine)

    store = BookmarkStore(SqlKeyValueStore(session_factory), clock)
    await store.load()

    scheduler = AsyncioScheduler()
    orchestrator = SyncOrchestrator(
        store,
        settings,
        clock=clock,
        scheduler=scheduler,
        authenticator=WebDavAuthenticator(),
    )
    manager = BookmarkManager(store, clock, orchestrator)
    return BookmarkSyncApp(
        settings=settings,
        engine=engine,
        store=store,
        orchestrator=orchestrator,
        manager=manager,
        scheduler=scheduler,
    )
