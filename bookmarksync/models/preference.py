"""Key-value preference model."""

from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from bookmarksync.models.base import Base


class Preference(Base):
    """A named text blob, e.g. the serialized bookmark collection."""

    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
