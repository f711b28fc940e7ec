"""Tests for WebDAV URL parsing."""

from __future__ import annotations

import pytest

from bookmarksync.exceptions import InvalidConfigError
from bookmarksync.webdav.url import Authority, WebDavProtocol, parse_remote_url


class TestParseRemoteUrl:
    @pytest.mark.parametrize(
        ("url", "protocol", "port"),
        [
            ("https://dav.example.com/files", WebDavProtocol.DAVS, 443),
            ("webdavs://dav.example.com/files", WebDavProtocol.DAVS, 443),
            ("davs://dav.example.com/files", WebDavProtocol.DAVS, 443),
            ("http://dav.example.com/files", WebDavProtocol.DAV, 80),
            ("webdav://dav.example.com/files", WebDavProtocol.DAV, 80),
            ("DAV://dav.example.com/files", WebDavProtocol.DAV, 80),
        ],
    )
    def test_scheme_mapping(self, url: str, protocol: WebDavProtocol, port: int) -> None:
        parsed = parse_remote_url(url)
        assert parsed.protocol is protocol
        assert parsed.port == port
        assert parsed.host == "dav.example.com"
        assert parsed.base_path == "/files"

    def test_explicit_port(self) -> None:
        parsed = parse_remote_url("https://nas.local:8443/dav/")
        assert parsed.port == 8443
        assert parsed.base_path == "/dav"

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert parse_remote_url("  https://dav.example.com  ").host == "dav.example.com"

    @pytest.mark.parametrize("url", ["ftp://host/path", "host/path", "file:///tmp"])
    def test_unsupported_scheme(self, url: str) -> None:
        with pytest.raises(InvalidConfigError, match="scheme"):
            parse_remote_url(url)

    def test_missing_host(self) -> None:
        with pytest.raises(InvalidConfigError, match="host"):
            parse_remote_url("https:///path")

    def test_invalid_port(self) -> None:
        with pytest.raises(InvalidConfigError):
            parse_remote_url("https://dav.example.com:notaport/")


class TestPaths:
    @pytest.mark.parametrize(
        ("url", "sync_path", "expected"),
        [
            ("https://h/remote.php/webdav", "/bookmarks/", "/remote.php/webdav/bookmarks"),
            ("https://h/remote.php/webdav/", "bookmarks", "/remote.php/webdav/bookmarks"),
            ("https://h", "/bookmarks/", "/bookmarks"),
            ("https://h/base", "/a/b/", "/base/a/b"),
        ],
    )
    def test_root_path(self, url: str, sync_path: str, expected: str) -> None:
        assert parse_remote_url(url).root_path(sync_path) == expected

    def test_authority_carries_username(self) -> None:
        authority = parse_remote_url("https://dav.example.com:8443/x").authority("alice")
        assert authority == Authority(WebDavProtocol.DAVS, "dav.example.com", 8443, "alice")
        assert authority.base_url == "https://dav.example.com:8443"

    def test_ipv6_base_url(self) -> None:
        authority = parse_remote_url("http://[::1]:8080/dav").authority()
        assert authority.base_url == "http://[::1]:8080"
