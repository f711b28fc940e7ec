"""Application-level exception types.

Convention:
- ``MalformedRecordError``: a stored or transferred blob cannot be decoded.
  The local store and the sync orchestrator recover from it by substituting
  empty/default state; it never reaches the caller of ``sync()``.
- ``InvalidConfigError``: the configured remote URL is unusable.  Surfaced
  as a failed sync with a descriptive reason; no network call is attempted.
- ``TransportError``: a network or remote I/O failure.  Surfaced as a failed
  sync carrying the underlying message.
"""

from __future__ import annotations


class BookmarkSyncError(Exception):
    """Base class for bookmark sync errors."""


class MalformedRecordError(BookmarkSyncError, ValueError):
    """Raised when a bookmark or metadata record cannot be decoded."""


class InvalidConfigError(BookmarkSyncError, ValueError):
    """Raised when the remote endpoint configuration is unusable."""


class TransportError(BookmarkSyncError):
    """Raised when a remote file operation fails."""
