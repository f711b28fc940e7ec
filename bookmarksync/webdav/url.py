"""WebDAV endpoint addressing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlsplit

from bookmarksync.exceptions import InvalidConfigError


class WebDavProtocol(Enum):
    """WebDAV transport variant."""

    DAV = ("http", 80)
    DAVS = ("https", 443)

    def __init__(self, scheme: str, default_port: int) -> None:
        self.scheme = scheme
        self.default_port = default_port


_SCHEMES = {
    "https": WebDavProtocol.DAVS,
    "webdavs": WebDavProtocol.DAVS,
    "davs": WebDavProtocol.DAVS,
    "http": WebDavProtocol.DAV,
    "webdav": WebDavProtocol.DAV,
    "dav": WebDavProtocol.DAV,
}


@dataclass(frozen=True)
class Authority:
    """Where and as whom to connect."""

    protocol: WebDavProtocol
    host: str
    port: int
    username: str = ""

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.protocol.scheme}://{host}:{self.port}"


@dataclass(frozen=True)
class RemoteUrl:
    """A parsed WebDAV URL: protocol, host, port and base path."""

    protocol: WebDavProtocol
    host: str
    port: int
    base_path: str

    def authority(self, username: str = "") -> Authority:
        return Authority(self.protocol, self.host, self.port, username)

    def root_path(self, sync_path: str) -> str:
        """Absolute remote directory holding the sync files."""
        root = PurePosixPath("/") / self.base_path.strip("/") / sync_path.strip("/")
        return str(root)


def parse_remote_url(url: str) -> RemoteUrl:
    """Parse a WebDAV URL.

    Accepted schemes: ``http``/``webdav``/``dav`` and their secure variants
    ``https``/``webdavs``/``davs``.  Raises InvalidConfigError for anything
    else, a missing host or an invalid port.
    """
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as exc:
        raise InvalidConfigError(f"Invalid WebDAV URL: {exc}") from exc

    protocol = _SCHEMES.get(parts.scheme.lower())
    if protocol is None:
        msg = "Invalid WebDAV URL scheme. Use http:// or https://"
        raise InvalidConfigError(msg)
    if not parts.hostname:
        raise InvalidConfigError("Invalid WebDAV URL host")

    return RemoteUrl(
        protocol=protocol,
        host=parts.hostname,
        port=port if port else protocol.default_port,
        base_path=parts.path.rstrip("/"),
    )
