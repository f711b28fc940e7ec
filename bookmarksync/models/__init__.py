"""SQLAlchemy ORM models for bookmarksync."""

from bookmarksync.models.base import Base
from bookmarksync.models.preference import Preference

__all__ = [
    "Base",
    "Preference",
]
