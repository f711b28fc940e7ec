"""Bookmark entity and its JSON record codec."""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from bookmarksync.exceptions import MalformedRecordError
from bookmarksync.schemas.bookmark import BookmarkRecord

KEY_BOOKMARKS = "bookmarks"


@dataclass(frozen=True)
class Bookmark:
    """A saved file-system location.

    ``show_in_sidebar`` is only meaningful for directories and is forced to
    False for files on every construction, including ``dataclasses.replace``.
    """

    id: str
    name: str
    path: str
    is_directory: bool
    tags: tuple[str, ...] = field(default_factory=tuple)
    notes: str | None = None
    created_at: int = 0
    modified_at: int = 0
    show_in_sidebar: bool = False
    is_deleted: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))
        if not self.notes:
            object.__setattr__(self, "notes", None)
        if self.show_in_sidebar and not self.is_directory:
            object.__setattr__(self, "show_in_sidebar", False)
        if self.modified_at < self.created_at:
            msg = (
                f"Bookmark {self.id!r} modified_at ({self.modified_at}) "
                f"precedes created_at ({self.created_at})"
            )
            raise ValueError(msg)

    @classmethod
    def create(
        cls,
        name: str,
        path: str,
        is_directory: bool,
        *,
        now: int,
        tags: Iterable[str] = (),
        notes: str | None = None,
        show_in_sidebar: bool = False,
    ) -> Bookmark:
        """Create a new bookmark with a fresh id, stamped at ``now``."""
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            path=path,
            is_directory=is_directory,
            tags=tuple(tags),
            notes=notes,
            created_at=now,
            modified_at=now,
            show_in_sidebar=show_in_sidebar,
        )


def encode_bookmark(bookmark: Bookmark) -> dict[str, Any]:
    """Encode a bookmark as a camelCase record; absent notes are omitted."""
    record = BookmarkRecord(
        id=bookmark.id,
        name=bookmark.name,
        path=bookmark.path,
        is_directory=bookmark.is_directory,
        tags=list(bookmark.tags),
        notes=bookmark.notes,
        created_at=bookmark.created_at,
        modified_at=bookmark.modified_at,
        show_in_sidebar=bookmark.show_in_sidebar,
        is_deleted=bookmark.is_deleted,
    )
    return record.model_dump(by_alias=True, exclude_none=True)


def decode_bookmark(record: Any) -> Bookmark:
    """Decode a record into a bookmark.

    Raises MalformedRecordError when a required field is missing or has the
    wrong type, or when the decoded values violate a bookmark invariant.
    """
    if not isinstance(record, Mapping):
        msg = f"Bookmark record must be an object, got {type(record).__name__}"
        raise MalformedRecordError(msg)
    try:
        parsed = BookmarkRecord.model_validate(dict(record))
        return Bookmark(
            id=parsed.id,
            name=parsed.name,
            path=parsed.path,
            is_directory=parsed.is_directory,
            tags=tuple(parsed.tags),
            notes=parsed.notes,
            created_at=parsed.created_at,
            modified_at=parsed.modified_at,
            show_in_sidebar=parsed.show_in_sidebar,
            is_deleted=parsed.is_deleted,
        )
    except ValidationError as exc:
        msg = f"Invalid bookmark record: {exc.error_count()} validation error(s)"
        raise MalformedRecordError(msg) from exc
    except ValueError as exc:
        raise MalformedRecordError(str(exc)) from exc


def encode_bookmarks(bookmarks: Iterable[Bookmark]) -> list[dict[str, Any]]:
    return [encode_bookmark(b) for b in bookmarks]


def decode_bookmarks(records: Any) -> list[Bookmark]:
    """Decode a list of records; any bad entry fails the whole list."""
    if not isinstance(records, list):
        msg = f"Bookmark list must be an array, got {type(records).__name__}"
        raise MalformedRecordError(msg)
    return [decode_bookmark(record) for record in records]


def bookmarks_to_json(bookmarks: Iterable[Bookmark]) -> str:
    """Serialize bookmarks as a JSON array (local persisted form)."""
    return json.dumps(encode_bookmarks(bookmarks))


def bookmarks_from_json(text: str) -> list[Bookmark]:
    """Parse the JSON array produced by ``bookmarks_to_json``."""
    return decode_bookmarks(_load_json(text))


def remote_document_to_bytes(bookmarks: Iterable[Bookmark]) -> bytes:
    """Serialize the remote ``bookmarks.json`` document."""
    document = {KEY_BOOKMARKS: encode_bookmarks(bookmarks)}
    return json.dumps(document, indent=2).encode("utf-8")


def remote_document_from_bytes(data: bytes) -> list[Bookmark]:
    """Parse the remote ``bookmarks.json`` document."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedRecordError("Bookmark document is not valid UTF-8") from exc
    document = _load_json(text)
    if not isinstance(document, dict) or KEY_BOOKMARKS not in document:
        msg = f"Bookmark document is missing the {KEY_BOOKMARKS!r} key"
        raise MalformedRecordError(msg)
    return decode_bookmarks(document[KEY_BOOKMARKS])


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(f"Invalid JSON: {exc.msg}") from exc
