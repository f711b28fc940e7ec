"""Bookmark management: user-facing operations, filters and search."""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import StrEnum
from typing import TYPE_CHECKING

from bookmarksync.services.bookmark_codec import Bookmark

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import PurePath

    from bookmarksync.services.bookmark_store import BookmarkStore, Snapshot
    from bookmarksync.services.scheduler import Clock
    from bookmarksync.services.sync_service import SyncOrchestrator

logger = logging.getLogger(__name__)


class FilterKind(StrEnum):
    ALL = "all"
    FILES = "files"
    DIRECTORIES = "directories"
    TAG = "tag"


def apply_filter(
    bookmarks: Iterable[Bookmark], kind: FilterKind = FilterKind.ALL, tag: str | None = None
) -> list[Bookmark]:
    """Active bookmarks matching the filter."""
    active = [b for b in bookmarks if not b.is_deleted]
    if kind is FilterKind.FILES:
        return [b for b in active if not b.is_directory]
    if kind is FilterKind.DIRECTORIES:
        return [b for b in active if b.is_directory]
    if kind is FilterKind.TAG:
        if tag is None:
            msg = "A tag is required for the tag filter"
            raise ValueError(msg)
        return [b for b in active if tag in b.tags]
    return active


class BookmarkManager:
    """High-level bookmark operations.

    Every mutation requests an automatic sync when an orchestrator is wired.
    """

    def __init__(
        self,
        store: BookmarkStore,
        clock: Clock,
        orchestrator: SyncOrchestrator | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._orchestrator = orchestrator

    def list_bookmarks(
        self, kind: FilterKind = FilterKind.ALL, tag: str | None = None
    ) -> list[Bookmark]:
        return apply_filter(self._store.list(), kind, tag)

    def subscribe(
        self,
        listener: Callable[[list[Bookmark]], None],
        kind: FilterKind = FilterKind.ALL,
        tag: str | None = None,
    ) -> Callable[[], None]:
        """Receive filtered active bookmarks whenever the collection changes."""

        def _forward(snapshot: Snapshot) -> None:
            listener(apply_filter(snapshot, kind, tag))

        return self._store.subscribe(_forward)

    def get_by_id(self, bookmark_id: str) -> Bookmark | None:
        return self._store.get(bookmark_id)

    def get_by_path(self, path: str | PurePath) -> Bookmark | None:
        key = str(path)
        return next((b for b in self._store.list_active() if b.path == key), None)

    def is_bookmarked(self, path: str | PurePath) -> bool:
        return self.get_by_path(path) is not None

    async def add_bookmark(
        self,
        name: str,
        path: str | PurePath,
        is_directory: bool,
        tags: Iterable[str] = (),
        notes: str | None = None,
        show_in_sidebar: bool = False,
    ) -> Bookmark:
        bookmark = Bookmark.create(
            name,
            str(path),
            is_directory,
            now=self._clock.now_ms(),
            tags=tags,
            notes=notes,
            show_in_sidebar=show_in_sidebar,
        )
        await self.add(bookmark)
        return bookmark

    async def add(self, bookmark: Bookmark) -> None:
        await self._store.add(bookmark)
        logger.debug("Added bookmark %s -> %s", bookmark.id, bookmark.path)
        self._trigger_auto_sync()

    async def update_bookmark(
        self,
        bookmark_id: str,
        *,
        name: str | None = None,
        tags: Iterable[str] | None = None,
        notes: str | None = None,
        show_in_sidebar: bool | None = None,
    ) -> Bookmark | None:
        """Change selected fields; returns the stored result, None if unknown."""
        bookmark = self._store.get(bookmark_id)
        if bookmark is None:
            return None
        updated = replace(
            bookmark,
            name=name if name is not None else bookmark.name,
            tags=tuple(tags) if tags is not None else bookmark.tags,
            notes=notes if notes is not None else bookmark.notes,
            show_in_sidebar=(
                show_in_sidebar if show_in_sidebar is not None else bookmark.show_in_sidebar
            ),
        )
        await self.update(updated)
        return self._store.get(bookmark_id)

    async def update(self, bookmark: Bookmark) -> None:
        await self._store.update(bookmark)
        self._trigger_auto_sync()

    async def delete_bookmark(self, bookmark_id: str) -> None:
        await self._store.soft_delete(bookmark_id)
        self._trigger_auto_sync()

    async def purge_bookmark(self, bookmark_id: str) -> None:
        """Remove a bookmark without leaving a tombstone."""
        await self._store.hard_delete(bookmark_id)
        self._trigger_auto_sync()

    async def toggle_bookmark(
        self,
        name: str,
        path: str | PurePath,
        is_directory: bool,
        show_in_sidebar: bool = False,
    ) -> bool:
        """Bookmark ``path`` or remove its bookmark. Returns True if added."""
        existing = self.get_by_path(path)
        if existing is not None:
            await self.delete_bookmark(existing.id)
            return False
        await self.add_bookmark(name, path, is_directory, show_in_sidebar=show_in_sidebar)
        return True

    def sidebar_directories(self) -> list[Bookmark]:
        return [b for b in self._store.list_active() if b.is_directory and b.show_in_sidebar]

    def file_bookmarks(self) -> list[Bookmark]:
        return self.list_bookmarks(FilterKind.FILES)

    def bookmarks_by_tag(self, tag: str) -> list[Bookmark]:
        return self.list_bookmarks(FilterKind.TAG, tag)

    def all_tags(self) -> set[str]:
        return {tag for b in self._store.list_active() for tag in b.tags}

    def search(self, query: str) -> list[Bookmark]:
        """Case-insensitive match on name, path, tags and notes."""
        needle = query.lower()
        return [
            b
            for b in self._store.list_active()
            if needle in b.name.lower()
            or needle in b.path.lower()
            or any(needle in tag.lower() for tag in b.tags)
            or (b.notes is not None and needle in b.notes.lower())
        ]

    def export_json(self) -> str:
        return self._store.export_json()

    async def import_json(self, text: str) -> bool:
        imported = await self._store.import_json(text)
        if imported:
            self._trigger_auto_sync()
        return imported

    def _trigger_auto_sync(self) -> None:
        if self._orchestrator is not None:
            self._orchestrator.trigger_auto_sync()
