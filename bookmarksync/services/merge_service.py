"""Bookmark merge: reconcile local and remote collections by timestamp."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookmarksync.services.bookmark_codec import Bookmark
    from bookmarksync.services.sync_metadata import SyncMetadata

TOMBSTONE_RETENTION_MS = 30 * 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class SyncSnapshot:
    """A bookmark collection together with the metadata describing it."""

    bookmarks: tuple[Bookmark, ...]
    metadata: SyncMetadata


def merge_snapshots(
    local: SyncSnapshot,
    remote: SyncSnapshot | None,
    *,
    now_ms: int,
    retention_ms: int = TOMBSTONE_RETENTION_MS,
) -> SyncSnapshot:
    """Merge local and remote state into a new snapshot.

    Rules:
    - no remote state: local is returned unchanged
    - bookmark only on remote: taken unless it is a tombstone
    - bookmark on both sides: the strictly newer ``modified_at`` wins, ties go
      to local; a deleted winner is dropped
    - bookmark only on local: kept, tombstones included so the deletion
      reaches the remote
    - tombstones older than ``retention_ms`` are dropped

    Remote order comes first, followed by local-only bookmarks in local
    order.  Inputs are never modified.
    """
    if remote is None:
        return local

    unmatched = {b.id: b for b in local.bookmarks}
    merged: list[Bookmark] = []

    for remote_bookmark in remote.bookmarks:
        local_bookmark = unmatched.pop(remote_bookmark.id, None)
        if local_bookmark is None:
            if not remote_bookmark.is_deleted:
                merged.append(remote_bookmark)
            continue
        winner = (
            remote_bookmark
            if remote_bookmark.modified_at > local_bookmark.modified_at
            else local_bookmark
        )
        if not winner.is_deleted:
            merged.append(winner)

    merged.extend(b for b in local.bookmarks if b.id in unmatched)

    cutoff = now_ms - retention_ms
    kept = tuple(b for b in merged if not b.is_deleted or b.modified_at > cutoff)

    metadata = replace(
        local.metadata,
        last_modified_time=now_ms,
        version=max(local.metadata.version, remote.metadata.version),
    )
    return SyncSnapshot(bookmarks=kept, metadata=metadata)
