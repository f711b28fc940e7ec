"""Sync orchestrator: debounced, single-flight bookmark sync against WebDAV."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from bookmarksync.exceptions import InvalidConfigError, MalformedRecordError, TransportError
from bookmarksync.services.bookmark_codec import (
    remote_document_from_bytes,
    remote_document_to_bytes,
)
from bookmarksync.services.merge_service import SyncSnapshot, merge_snapshots
from bookmarksync.services.sync_metadata import (
    SyncMetadata,
    metadata_from_bytes,
    metadata_to_bytes,
)
from bookmarksync.webdav.authenticator import (
    WebDavAuthenticator,
    WebDavEndpoint,
    transient_endpoint,
)
from bookmarksync.webdav.client import WebDavClient
from bookmarksync.webdav.url import parse_remote_url

if TYPE_CHECKING:
    from collections.abc import Callable

    from bookmarksync.config import Settings
    from bookmarksync.services.bookmark_codec import Bookmark
    from bookmarksync.services.bookmark_store import BookmarkStore
    from bookmarksync.services.scheduler import Clock, ScheduledTask, Scheduler
    from bookmarksync.webdav.client import RemoteFileClient
    from bookmarksync.webdav.url import Authority

    ClientFactory = Callable[[Authority, WebDavAuthenticator], RemoteFileClient]
    SyncCallback = Callable[["SyncResult"], None]

logger = logging.getLogger(__name__)

BOOKMARKS_FILE = "bookmarks.json"
METADATA_FILE = ".sync_metadata.json"


class SyncFailure(StrEnum):
    """Why a sync did not succeed."""

    DECLINED = "declined"
    INVALID_CONFIG = "invalid_config"
    TRANSPORT_ERROR = "transport_error"
    UNEXPECTED_ERROR = "unexpected_error"


class SyncState(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one sync attempt."""

    success: bool
    message: str | None = None
    failure: SyncFailure | None = None

    @classmethod
    def ok(cls) -> SyncResult:
        return cls(success=True)

    @classmethod
    def failed(cls, failure: SyncFailure, message: str) -> SyncResult:
        return cls(success=False, message=message, failure=failure)


@dataclass(frozen=True)
class SyncStatus:
    enabled: bool
    last_sync_time: int
    device_id: str


class SyncOrchestrator:
    """Runs sync cycles between the local store and a WebDAV directory.

    At most one cycle executes at a time: a ``sync()`` arriving while another
    is running waits for it to finish and then runs its own cycle.
    Automatic triggers are debounced so that a burst of local edits results
    in a single deferred sync.
    """

    def __init__(
        self,
        store: BookmarkStore,
        settings: Settings,
        *,
        clock: Clock,
        scheduler: Scheduler,
        authenticator: WebDavAuthenticator | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock
        self._scheduler = scheduler
        self._authenticator = authenticator or WebDavAuthenticator()
        self._client_factory = client_factory or self._default_client_factory
        self._lock = asyncio.Lock()
        self._state = SyncState.IDLE
        self._last_sync_started: int | None = None
        self._pending_auto_sync: ScheduledTask | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state is SyncState.SYNCING

    @property
    def has_pending_auto_sync(self) -> bool:
        return self._pending_auto_sync is not None

    def sync_status(self) -> SyncStatus:
        metadata = self._store.metadata
        return SyncStatus(
            enabled=self._settings.sync_enabled,
            last_sync_time=metadata.last_sync_time,
            device_id=metadata.device_id,
        )

    async def sync(self, callback: SyncCallback | None = None) -> SyncResult:
        """Run one sync cycle and report the result.

        Never raises: every failure is converted into a SyncResult.
        """
        result = self._check_preconditions()
        if result is None:
            async with self._lock:
                self._state = SyncState.SYNCING
                self._last_sync_started = self._clock.now_ms()
                try:
                    result = await self._perform_sync()
                finally:
                    self._state = SyncState.IDLE
        if result.success:
            logger.info("Bookmark sync completed")
        else:
            logger.info("Bookmark sync did not complete (%s): %s", result.failure, result.message)
        if callback is not None:
            callback(result)
        return result

    def start_sync(self, callback: SyncCallback | None = None) -> None:
        """Run ``sync`` in the background."""

        async def _run() -> None:
            await self.sync(callback)

        self._scheduler.call_later(0, _run)

    def trigger_auto_sync(self) -> None:
        """Request a sync after a local change.

        Within the debounce window of the last sync start, a single deferred
        sync is scheduled for the end of the window; further triggers while
        it is pending are ignored.  Outside the window the sync starts now.
        """
        if self._check_preconditions() is not None:
            return

        now = self._clock.now_ms()
        debounce_ms = self._settings.debounce_ms
        if self._last_sync_started is not None:
            elapsed = now - self._last_sync_started
            if elapsed < debounce_ms:
                if self._pending_auto_sync is None:
                    delay = (debounce_ms - elapsed) / 1000
                    self._pending_auto_sync = self._scheduler.call_later(
                        delay, self._run_deferred_auto_sync
                    )
                    logger.debug("Deferred auto sync by %.3fs", delay)
                return

        self._last_sync_started = now
        self._scheduler.call_later(0, self._run_auto_sync)

    def initialize(self) -> None:
        """Kick off the startup sync."""
        self.trigger_auto_sync()

    def cancel_pending(self) -> bool:
        """Cancel a deferred auto sync that has not started yet."""
        pending = self._pending_auto_sync
        if pending is None:
            return False
        self._pending_auto_sync = None
        return pending.cancel()

    async def _run_deferred_auto_sync(self) -> None:
        self._pending_auto_sync = None
        self._last_sync_started = self._clock.now_ms()
        await self._run_auto_sync()

    async def _run_auto_sync(self) -> None:
        await self.sync()

    def _check_preconditions(self) -> SyncResult | None:
        if not self._settings.sync_enabled:
            return SyncResult.failed(SyncFailure.DECLINED, "Sync is not enabled")
        if not self._settings.webdav_url.strip():
            return SyncResult.failed(SyncFailure.DECLINED, "WebDAV URL is not configured")
        return None

    async def _perform_sync(self) -> SyncResult:
        settings = self._settings
        try:
            remote_url = parse_remote_url(settings.webdav_url)
        except InvalidConfigError as exc:
            return SyncResult.failed(SyncFailure.INVALID_CONFIG, str(exc))

        endpoint = WebDavEndpoint(
            authority=remote_url.authority(settings.webdav_username),
            password=settings.webdav_password,
            relative_path=remote_url.base_path.lstrip("/"),
        )
        root = remote_url.root_path(settings.effective_sync_path)

        try:
            async with transient_endpoint(self._authenticator, endpoint):
                async with self._client_factory(endpoint.authority, self._authenticator) as client:
                    await self._run_cycle(client, root)
        except TransportError as exc:
            logger.warning("Bookmark sync transport failure: %s", exc)
            return SyncResult.failed(SyncFailure.TRANSPORT_ERROR, f"IO Error: {exc}")
        except Exception as exc:
            logger.exception("Bookmark sync failed unexpectedly")
            return SyncResult.failed(SyncFailure.UNEXPECTED_ERROR, f"Sync failed: {exc}")
        return SyncResult.ok()

    async def _run_cycle(self, client: RemoteFileClient, root: str) -> None:
        if not await client.exists(root):
            await client.create_directories(root)

        bookmarks_path = f"{root.rstrip('/')}/{BOOKMARKS_FILE}"
        metadata_path = f"{root.rstrip('/')}/{METADATA_FILE}"

        remote = await self._read_remote(client, bookmarks_path, metadata_path)
        retention_ms = self._settings.tombstone_retention_ms

        def _merge(
            bookmarks: tuple[Bookmark, ...], metadata: SyncMetadata
        ) -> tuple[tuple[Bookmark, ...], SyncMetadata]:
            now = self._clock.now_ms()
            merged = merge_snapshots(
                SyncSnapshot(bookmarks=bookmarks, metadata=metadata),
                remote,
                now_ms=now,
                retention_ms=retention_ms,
            )
            logger.info(
                "Merged %d local and %d remote bookmark(s) into %d",
                len(bookmarks),
                len(remote.bookmarks) if remote is not None else 0,
                len(merged.bookmarks),
            )
            return merged.bookmarks, replace(merged.metadata, last_sync_time=now)

        bookmarks, metadata = await self._store.apply_merge(_merge)

        await client.write(bookmarks_path, remote_document_to_bytes(bookmarks))
        await client.write(metadata_path, metadata_to_bytes(metadata))

    async def _read_remote(
        self, client: RemoteFileClient, bookmarks_path: str, metadata_path: str
    ) -> SyncSnapshot | None:
        """Remote state, or None when there is none or it cannot be decoded."""
        if not await client.exists(bookmarks_path):
            logger.info("No remote bookmarks at %s", bookmarks_path)
            return None
        try:
            bookmarks = remote_document_from_bytes(await client.read_all_bytes(bookmarks_path))
            if await client.exists(metadata_path):
                metadata = metadata_from_bytes(await client.read_all_bytes(metadata_path))
            else:
                metadata = SyncMetadata.create(self._clock.now_ms())
        except MalformedRecordError as exc:
            logger.warning("Remote bookmark data is unreadable, using local only: %s", exc)
            return None
        return SyncSnapshot(bookmarks=tuple(bookmarks), metadata=metadata)

    def _default_client_factory(
        self, authority: Authority, authenticator: WebDavAuthenticator
    ) -> RemoteFileClient:
        return WebDavClient(
            authority,
            authenticator,
            timeout=self._settings.request_timeout_seconds,
        )
