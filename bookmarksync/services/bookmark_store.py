"""Local bookmark store: CRUD with tombstones over a key-value collaborator."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from bookmarksync.exceptions import MalformedRecordError
from bookmarksync.services.bookmark_codec import (
    Bookmark,
    bookmarks_from_json,
    bookmarks_to_json,
    decode_bookmarks,
    encode_bookmarks,
)
from bookmarksync.services.sync_metadata import (
    SyncMetadata,
    decode_metadata,
    encode_metadata,
    metadata_from_json,
    metadata_to_json,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bookmarksync.services.kv_store import KeyValueStore
    from bookmarksync.services.scheduler import Clock

logger = logging.getLogger(__name__)

KEY_BOOKMARKS = "bookmarks"
KEY_SYNC_METADATA = "sync_metadata"

Snapshot = tuple[Bookmark, ...]


class BookmarkStore:
    """Authoritative in-memory bookmark collection, persisted on every change.

    Every mutation runs inside a single critical section: the new collection
    is computed from the current one, persisted, published to subscribers and
    the metadata ``last_modified_time`` is stamped, all before the next
    mutation may start.  Readers only ever see fully-formed snapshots.
    """

    def __init__(self, kv_store: KeyValueStore, clock: Clock) -> None:
        self._kv = kv_store
        self._clock = clock
        self._bookmarks: Snapshot = ()
        self._metadata = SyncMetadata.create(clock.now_ms())
        self._loaded = False
        self._lock = asyncio.Lock()
        self._listeners: list[Callable[[Snapshot], None]] = []

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def metadata(self) -> SyncMetadata:
        return self._metadata

    async def load(self) -> None:
        """Load persisted state; corrupted blobs degrade to empty state."""
        async with self._lock:
            raw_bookmarks = await self._kv.get(KEY_BOOKMARKS)
            bookmarks: Snapshot = ()
            if raw_bookmarks is not None:
                try:
                    bookmarks = tuple(bookmarks_from_json(raw_bookmarks))
                except MalformedRecordError as exc:
                    logger.warning("Stored bookmarks are unreadable, starting empty: %s", exc)

            raw_metadata = await self._kv.get(KEY_SYNC_METADATA)
            metadata: SyncMetadata | None = None
            if raw_metadata is not None:
                try:
                    metadata = metadata_from_json(raw_metadata)
                except MalformedRecordError as exc:
                    logger.warning("Stored sync metadata is unreadable, regenerating: %s", exc)
            if metadata is None:
                metadata = SyncMetadata.create(self._clock.now_ms())
                if raw_metadata is None:
                    await self._kv.put(KEY_SYNC_METADATA, metadata_to_json(metadata))

            self._bookmarks = bookmarks
            self._metadata = metadata
            self._loaded = True
            logger.info("Loaded %d bookmark(s)", len(bookmarks))
            self._publish()

    def list(self) -> Snapshot:
        """All bookmarks, tombstones included."""
        return self._bookmarks

    def list_active(self) -> Snapshot:
        return tuple(b for b in self._bookmarks if not b.is_deleted)

    def get(self, bookmark_id: str) -> Bookmark | None:
        return next((b for b in self._bookmarks if b.id == bookmark_id), None)

    async def add(self, bookmark: Bookmark) -> None:
        await self._mutate(lambda current: (*current, bookmark))

    async def update(self, bookmark: Bookmark) -> None:
        """Replace the bookmark with the same id; unknown ids are ignored."""

        def _apply(current: Snapshot) -> Snapshot | None:
            if not any(b.id == bookmark.id for b in current):
                return None
            updated = self._touch(bookmark)
            return tuple(updated if b.id == bookmark.id else b for b in current)

        await self._mutate(_apply)

    async def soft_delete(self, bookmark_id: str) -> None:
        """Mark a bookmark deleted, keeping it as a tombstone for sync."""

        def _apply(current: Snapshot) -> Snapshot | None:
            if not any(b.id == bookmark_id for b in current):
                return None
            return tuple(
                self._touch(replace(b, is_deleted=True)) if b.id == bookmark_id else b
                for b in current
            )

        await self._mutate(_apply)

    async def hard_delete(self, bookmark_id: str) -> None:
        """Physically remove a bookmark. Normal user deletes use soft_delete."""

        def _apply(current: Snapshot) -> Snapshot | None:
            remaining = tuple(b for b in current if b.id != bookmark_id)
            return None if len(remaining) == len(current) else remaining

        await self._mutate(_apply)

    async def save(self, bookmarks: Iterable[Bookmark]) -> None:
        """Replace the whole collection."""
        new_bookmarks = tuple(bookmarks)
        await self._mutate(lambda _current: new_bookmarks)

    async def save_metadata(self, metadata: SyncMetadata) -> None:
        async with self._lock:
            await self._write_metadata(metadata)

    async def apply_merge(
        self,
        merge: Callable[[Snapshot, SyncMetadata], tuple[Snapshot, SyncMetadata]],
    ) -> tuple[Snapshot, SyncMetadata]:
        """Replace bookmarks and metadata with ``merge(bookmarks, metadata)``.

        ``merge`` sees the current state inside the critical section, so a
        mutation that finished just before is part of its input.  Returns the
        stored result.
        """
        async with self._lock:
            bookmarks, metadata = merge(self._bookmarks, self._metadata)
            await self._kv.put(KEY_BOOKMARKS, bookmarks_to_json(bookmarks))
            self._bookmarks = bookmarks
            self._publish()
            await self._write_metadata(metadata)
            return bookmarks, metadata

    def subscribe(self, listener: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Register a snapshot listener; returns a function that unsubscribes it.

        A loaded store delivers the current snapshot immediately.
        """
        self._listeners.append(listener)
        if self._loaded:
            self._notify(listener, self._bookmarks)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def export_json(self) -> str:
        """Pretty-printed backup of bookmarks and sync metadata."""
        document = {
            KEY_BOOKMARKS: encode_bookmarks(self._bookmarks),
            KEY_SYNC_METADATA: encode_metadata(self._metadata),
        }
        return json.dumps(document, indent=2)

    async def import_json(self, text: str) -> bool:
        """Replace local state from an ``export_json`` backup.

        Returns False and leaves state untouched if the backup is malformed.
        """
        try:
            document = json.loads(text)
            if not isinstance(document, dict) or KEY_BOOKMARKS not in document:
                raise MalformedRecordError(f"Backup is missing the {KEY_BOOKMARKS!r} key")
            bookmarks = decode_bookmarks(document[KEY_BOOKMARKS])
            raw_metadata = document.get(KEY_SYNC_METADATA)
            metadata = decode_metadata(raw_metadata) if raw_metadata is not None else None
        except (json.JSONDecodeError, MalformedRecordError) as exc:
            logger.warning("Bookmark import failed: %s", exc)
            return False

        await self.save(bookmarks)
        if metadata is not None:
            await self.save_metadata(metadata)
        logger.info("Imported %d bookmark(s)", len(bookmarks))
        return True

    def _touch(self, bookmark: Bookmark) -> Bookmark:
        return replace(bookmark, modified_at=max(self._clock.now_ms(), bookmark.created_at))

    async def _mutate(self, transform: Callable[[Snapshot], Snapshot | None]) -> None:
        async with self._lock:
            new_bookmarks = transform(self._bookmarks)
            if new_bookmarks is None:
                return
            await self._kv.put(KEY_BOOKMARKS, bookmarks_to_json(new_bookmarks))
            self._bookmarks = new_bookmarks
            self._publish()
            await self._write_metadata(
                replace(self._metadata, last_modified_time=self._clock.now_ms())
            )

    async def _write_metadata(self, metadata: SyncMetadata) -> None:
        await self._kv.put(KEY_SYNC_METADATA, metadata_to_json(metadata))
        self._metadata = metadata

    def _publish(self) -> None:
        snapshot = self._bookmarks
        for listener in list(self._listeners):
            self._notify(listener, snapshot)

    def _notify(self, listener: Callable[[Snapshot], None], snapshot: Snapshot) -> None:
        try:
            listener(snapshot)
        except Exception:
            logger.exception("Bookmark listener %r failed", listener)
