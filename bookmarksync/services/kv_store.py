"""Key-value persistence for serialized bookmark state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import select

from bookmarksync.models.preference import Preference

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Persistent string store keyed by name."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""
        ...

    async def put(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


class SqlKeyValueStore:
    """KeyValueStore backed by the ``preferences`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Preference.value).where(Preference.key == key))
            return result.scalar_one_or_none()

    async def put(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            await session.merge(Preference(key=key, value=value))
            await session.commit()
        logger.debug("Stored preference %s (%d chars)", key, len(value))
