"""WebDAV remote file access used by bookmark sync."""

from bookmarksync.webdav.authenticator import (
    WebDavAuthenticator,
    WebDavEndpoint,
    transient_endpoint,
)
from bookmarksync.webdav.client import RemoteFileClient, WebDavClient
from bookmarksync.webdav.url import Authority, RemoteUrl, WebDavProtocol, parse_remote_url

__all__ = [
    "Authority",
    "RemoteFileClient",
    "RemoteUrl",
    "WebDavAuthenticator",
    "WebDavClient",
    "WebDavEndpoint",
    "WebDavProtocol",
    "parse_remote_url",
    "transient_endpoint",
]
