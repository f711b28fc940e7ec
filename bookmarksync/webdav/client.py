"""WebDAV file access over httpx."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from bookmarksync.exceptions import TransportError

if TYPE_CHECKING:
    from types import TracebackType

    from bookmarksync.webdav.authenticator import WebDavAuthenticator
    from bookmarksync.webdav.url import Authority

logger = logging.getLogger(__name__)

_PROPFIND_BODY = (
    b'<?xml version="1.0" encoding="utf-8"?>'
    b'<propfind xmlns="DAV:"><prop><resourcetype/></prop></propfind>'
)


@runtime_checkable
class RemoteFileClient(Protocol):
    """File operations on a remote store, addressed by absolute POSIX paths."""

    async def exists(self, path: str) -> bool: ...

    async def create_directories(self, path: str) -> None: ...

    async def read_all_bytes(self, path: str) -> bytes: ...

    async def write(self, path: str, data: bytes) -> None: ...

    async def __aenter__(self) -> RemoteFileClient: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


class WebDavClient:
    """RemoteFileClient speaking WebDAV.

    Credentials are resolved through the authenticator on every request, so a
    client outliving its transient endpoint falls back to anonymous access.
    """

    def __init__(
        self,
        authority: Authority,
        authenticator: WebDavAuthenticator,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._authority = authority
        self._authenticator = authenticator
        self._client = httpx.AsyncClient(
            base_url=authority.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> WebDavClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def exists(self, path: str) -> bool:
        resp = await self._request(
            "PROPFIND",
            path,
            headers={"Depth": "0", "Content-Type": "application/xml; charset=utf-8"},
            content=_PROPFIND_BODY,
        )
        if resp.status_code == 404:
            return False
        self._check(resp, "PROPFIND", path)
        return True

    async def create_directories(self, path: str) -> None:
        """Create ``path`` and any missing parents (MKCOL per segment)."""
        current = PurePosixPath("/")
        for part in PurePosixPath(path).parts[1:]:
            current = current / part
            collection = f"{current}/"
            if await self.exists(collection):
                continue
            resp = await self._request("MKCOL", collection)
            # 405: created concurrently by someone else
            if resp.status_code == 405:
                continue
            self._check(resp, "MKCOL", collection)
            logger.info("Created remote directory %s", collection)

    async def read_all_bytes(self, path: str) -> bytes:
        resp = await self._request("GET", path)
        self._check(resp, "GET", path)
        return resp.content

    async def write(self, path: str, data: bytes) -> None:
        resp = await self._request(
            "PUT",
            path,
            headers={"Content-Type": "application/json; charset=utf-8"},
            content=data,
        )
        self._check(resp, "PUT", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        auth = self._authenticator.get_authentication(self._authority)
        try:
            return await self._client.request(
                method,
                quote(path),
                headers=headers,
                content=content,
                auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise TransportError(msg) from exc

    @staticmethod
    def _check(resp: httpx.Response, method: str, path: str) -> None:
        if resp.is_success:
            return
        msg = f"{method} {path} returned HTTP {resp.status_code}"
        raise TransportError(msg)
