"""Hypothesis strategies for bookmark data."""

from __future__ import annotations

import string

from hypothesis import strategies as st

from bookmarksync.services.bookmark_codec import Bookmark
from bookmarksync.services.sync_metadata import SyncMetadata

_TEXT = st.text(alphabet=string.ascii_letters + string.digits + " _-./", max_size=20)
_TIME = st.integers(min_value=0, max_value=2_000_000_000_000)


@st.composite
def bookmarks(draw: st.DrawFn, ids: st.SearchStrategy[str] | None = None) -> Bookmark:
    created_at = draw(_TIME)
    return Bookmark(
        id=draw(ids if ids is not None else st.uuids().map(str)),
        name=draw(_TEXT),
        path="/" + draw(_TEXT),
        is_directory=draw(st.booleans()),
        tags=tuple(draw(st.lists(_TEXT, max_size=4))),
        notes=draw(st.none() | _TEXT),
        created_at=created_at,
        modified_at=created_at + draw(st.integers(min_value=0, max_value=10**10)),
        show_in_sidebar=draw(st.booleans()),
        is_deleted=draw(st.booleans()),
    )


def bookmark_lists(id_pool: list[str]) -> st.SearchStrategy[list[Bookmark]]:
    """Lists of bookmarks with unique ids drawn from a shared pool."""
    return st.lists(
        bookmarks(ids=st.sampled_from(id_pool)),
        max_size=len(id_pool),
        unique_by=lambda b: b.id,
    )


metadata = st.builds(
    SyncMetadata,
    last_sync_time=_TIME,
    device_id=st.uuids().map(str),
    version=st.integers(min_value=1, max_value=5),
    last_modified_time=_TIME,
)
