"""Tests for the bookmark entity and its record codec."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from bookmarksync.exceptions import MalformedRecordError
from bookmarksync.services.bookmark_codec import (
    Bookmark,
    bookmarks_from_json,
    bookmarks_to_json,
    decode_bookmark,
    encode_bookmark,
    remote_document_from_bytes,
    remote_document_to_bytes,
)


def _record(**overrides: object) -> dict[str, object]:
    record: dict[str, object] = {
        "id": "b-1",
        "name": "Downloads",
        "path": "/storage/emulated/0/Download",
        "isDirectory": True,
        "tags": ["phone", "inbox"],
        "notes": "check weekly",
        "createdAt": 100,
        "modifiedAt": 200,
        "showInSidebar": True,
        "isDeleted": False,
    }
    record.update(overrides)
    return record


class TestBookmarkEntity:
    def test_create_stamps_both_timestamps(self) -> None:
        bookmark = Bookmark.create("Docs", "/docs", True, now=1234)
        assert bookmark.created_at == 1234
        assert bookmark.modified_at == 1234
        assert bookmark.is_deleted is False
        assert bookmark.id

    def test_create_generates_unique_ids(self) -> None:
        first = Bookmark.create("a", "/a", False, now=1)
        second = Bookmark.create("a", "/a", False, now=1)
        assert first.id != second.id

    def test_file_cannot_be_pinned_to_sidebar(self) -> None:
        bookmark = Bookmark.create("notes.txt", "/notes.txt", False, now=1, show_in_sidebar=True)
        assert bookmark.show_in_sidebar is False

    def test_directory_can_be_pinned_to_sidebar(self) -> None:
        bookmark = Bookmark.create("Music", "/music", True, now=1, show_in_sidebar=True)
        assert bookmark.show_in_sidebar is True

    def test_replace_enforces_sidebar_invariant(self) -> None:
        bookmark = Bookmark.create("notes.txt", "/notes.txt", False, now=1)
        assert replace(bookmark, show_in_sidebar=True).show_in_sidebar is False

    def test_modified_before_created_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="precedes"):
            Bookmark(id="x", name="x", path="/x", is_directory=False, created_at=10, modified_at=5)

    def test_tags_are_stored_as_tuple(self) -> None:
        bookmark = Bookmark.create("a", "/a", False, now=1, tags=["b", "a"])
        assert bookmark.tags == ("b", "a")

    def test_empty_notes_become_none(self) -> None:
        bookmark = Bookmark.create("a", "/a", False, now=1, notes="")
        assert bookmark.notes is None


class TestEncode:
    def test_uses_camel_case_keys(self) -> None:
        encoded = encode_bookmark(decode_bookmark(_record()))
        assert encoded == _record()

    def test_absent_notes_are_omitted(self) -> None:
        bookmark = Bookmark.create("a", "/a", False, now=1)
        assert "notes" not in encode_bookmark(bookmark)

    def test_tags_encode_as_list(self) -> None:
        bookmark = Bookmark.create("a", "/a", False, now=1, tags=("x", "y"))
        assert encode_bookmark(bookmark)["tags"] == ["x", "y"]


class TestDecode:
    @pytest.mark.parametrize("missing", ["id", "name", "path", "isDirectory"])
    def test_missing_required_field(self, missing: str) -> None:
        record = _record()
        del record[missing]
        with pytest.raises(MalformedRecordError):
            decode_bookmark(record)

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("id", 7),
            ("name", None),
            ("path", ["/a"]),
            ("isDirectory", "yes"),
            ("createdAt", "100"),
            ("modifiedAt", "200.0"),
            ("modifiedAt", 200.0),
            ("createdAt", True),
            ("isDeleted", "yes"),
            ("showInSidebar", 1),
        ],
    )
    def test_wrong_type_for_required_field(self, key: str, value: object) -> None:
        with pytest.raises(MalformedRecordError):
            decode_bookmark(_record(**{key: value}))

    def test_missing_timestamps_are_rejected(self) -> None:
        record = _record()
        del record["modifiedAt"]
        with pytest.raises(MalformedRecordError):
            decode_bookmark(record)

    def test_optional_fields_default(self) -> None:
        record = _record()
        for key in ("tags", "notes", "showInSidebar", "isDeleted"):
            del record[key]
        bookmark = decode_bookmark(record)
        assert bookmark.tags == ()
        assert bookmark.notes is None
        assert bookmark.show_in_sidebar is False
        assert bookmark.is_deleted is False

    def test_empty_notes_decode_to_none(self) -> None:
        assert decode_bookmark(_record(notes="")).notes is None

    def test_sidebar_flag_dropped_for_files(self) -> None:
        bookmark = decode_bookmark(_record(isDirectory=False, showInSidebar=True))
        assert bookmark.show_in_sidebar is False

    def test_unknown_keys_are_ignored(self) -> None:
        bookmark = decode_bookmark(_record(color="red"))
        assert bookmark.id == "b-1"

    def test_non_object_record(self) -> None:
        with pytest.raises(MalformedRecordError):
            decode_bookmark(["id", "b-1"])

    def test_invariant_violation_is_malformed(self) -> None:
        with pytest.raises(MalformedRecordError):
            decode_bookmark(_record(createdAt=500, modifiedAt=100))


class TestJsonHelpers:
    def test_local_blob_round_trip(self) -> None:
        bookmarks = [decode_bookmark(_record()), Bookmark.create("b", "/b", False, now=5)]
        assert bookmarks_from_json(bookmarks_to_json(bookmarks)) == bookmarks

    def test_local_blob_invalid_json(self) -> None:
        with pytest.raises(MalformedRecordError):
            bookmarks_from_json("[{not json")

    def test_local_blob_must_be_list(self) -> None:
        with pytest.raises(MalformedRecordError):
            bookmarks_from_json(json.dumps(_record()))

    def test_one_bad_entry_fails_the_list(self) -> None:
        text = json.dumps([_record(), {"id": "broken"}])
        with pytest.raises(MalformedRecordError):
            bookmarks_from_json(text)

    def test_remote_document_wraps_bookmarks_key(self) -> None:
        bookmark = decode_bookmark(_record())
        document = json.loads(remote_document_to_bytes([bookmark]))
        assert document == {"bookmarks": [_record()]}

    def test_remote_document_is_pretty_printed(self) -> None:
        data = remote_document_to_bytes([decode_bookmark(_record())])
        assert b"\n  " in data

    def test_remote_document_missing_key(self) -> None:
        with pytest.raises(MalformedRecordError, match="bookmarks"):
            remote_document_from_bytes(b'{"items": []}')

    def test_remote_document_bad_utf8(self) -> None:
        with pytest.raises(MalformedRecordError):
            remote_document_from_bytes(b"\xff\xfe{")
