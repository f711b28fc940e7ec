"""Per-installation sync metadata and its codec."""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from bookmarksync.exceptions import MalformedRecordError
from bookmarksync.schemas.bookmark import SyncMetadataRecord

CURRENT_VERSION = 1


@dataclass(frozen=True)
class SyncMetadata:
    """Sync freshness state of one local store."""

    last_sync_time: int
    device_id: str
    version: int
    last_modified_time: int

    @classmethod
    def create(cls, now: int) -> SyncMetadata:
        """Metadata for a store that has never synced."""
        return cls(
            last_sync_time=0,
            device_id=str(uuid.uuid4()),
            version=CURRENT_VERSION,
            last_modified_time=now,
        )


def encode_metadata(metadata: SyncMetadata) -> dict[str, Any]:
    record = SyncMetadataRecord(
        last_sync_time=metadata.last_sync_time,
        device_id=metadata.device_id,
        version=metadata.version,
        last_modified_time=metadata.last_modified_time,
    )
    return record.model_dump(by_alias=True)


def decode_metadata(record: Any) -> SyncMetadata:
    """Decode a metadata record, raising MalformedRecordError on bad input."""
    if not isinstance(record, Mapping):
        msg = f"Sync metadata must be an object, got {type(record).__name__}"
        raise MalformedRecordError(msg)
    try:
        parsed = SyncMetadataRecord.model_validate(dict(record))
    except ValidationError as exc:
        msg = f"Invalid sync metadata: {exc.error_count()} validation error(s)"
        raise MalformedRecordError(msg) from exc
    return SyncMetadata(
        last_sync_time=parsed.last_sync_time,
        device_id=parsed.device_id,
        version=parsed.version,
        last_modified_time=parsed.last_modified_time,
    )


def metadata_to_json(metadata: SyncMetadata, *, indent: int | None = None) -> str:
    return json.dumps(encode_metadata(metadata), indent=indent)


def metadata_from_json(text: str) -> SyncMetadata:
    try:
        record = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(f"Invalid JSON: {exc.msg}") from exc
    return decode_metadata(record)


def metadata_to_bytes(metadata: SyncMetadata) -> bytes:
    """Serialize the remote ``.sync_metadata.json`` document."""
    return metadata_to_json(metadata, indent=2).encode("utf-8")


def metadata_from_bytes(data: bytes) -> SyncMetadata:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedRecordError("Sync metadata is not valid UTF-8") from exc
    return metadata_from_json(text)
