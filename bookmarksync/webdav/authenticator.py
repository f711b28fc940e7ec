"""Registry of credentialed WebDAV endpoints."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from bookmarksync.webdav.url import Authority

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebDavEndpoint:
    """A connection descriptor: authority plus the password to use for it."""

    authority: Authority
    password: str = field(repr=False)
    relative_path: str = ""
    name: str = "Bookmark Sync"


class WebDavAuthenticator:
    """Looks up credentials for an authority.

    Transient endpoints exist only for the duration of a sync and must be
    removed again; use ``transient_endpoint``.
    """

    def __init__(self) -> None:
        self._transient: dict[Authority, WebDavEndpoint] = {}

    def add_transient(self, endpoint: WebDavEndpoint) -> None:
        self._transient[endpoint.authority] = endpoint

    def remove_transient(self, endpoint: WebDavEndpoint) -> None:
        if self._transient.get(endpoint.authority) is endpoint:
            del self._transient[endpoint.authority]

    def get_authentication(self, authority: Authority) -> httpx.Auth | None:
        """Basic auth for a registered authority, None if unknown or anonymous."""
        endpoint = self._transient.get(authority)
        if endpoint is None or not authority.username:
            return None
        return httpx.BasicAuth(authority.username, endpoint.password)


@asynccontextmanager
async def transient_endpoint(
    authenticator: WebDavAuthenticator, endpoint: WebDavEndpoint
) -> AsyncIterator[WebDavEndpoint]:
    """Register ``endpoint`` for the duration of the block, always removing it."""
    authenticator.add_transient(endpoint)
    logger.debug("Registered transient endpoint %s", endpoint.authority.base_url)
    try:
        yield endpoint
    finally:
        authenticator.remove_transient(endpoint)
        logger.debug("Removed transient endpoint %s", endpoint.authority.base_url)
