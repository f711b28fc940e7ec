"""Wire schemas for bookmark and sync metadata records.

Records use camelCase keys so that files written by other clients of the same
sync directory stay readable.
"""

from __future__ import annotations

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
)


class BookmarkRecord(BaseModel):
    """Serialized form of a single bookmark."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: StrictStr
    name: StrictStr
    path: StrictStr
    is_directory: StrictBool = Field(alias="isDirectory")
    tags: list[StrictStr] = Field(default_factory=list)
    notes: str | None = None
    created_at: StrictInt = Field(alias="createdAt")
    modified_at: StrictInt = Field(alias="modifiedAt")
    show_in_sidebar: StrictBool = Field(default=False, alias="showInSidebar")
    is_deleted: StrictBool = Field(default=False, alias="isDeleted")

    @field_validator("notes")
    @classmethod
    def empty_notes_to_none(cls, value: str | None) -> str | None:
        return value or None


class SyncMetadataRecord(BaseModel):
    """Serialized form of the per-installation sync metadata."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_sync_time: StrictInt = Field(alias="lastSyncTime")
    device_id: StrictStr = Field(alias="deviceId")
    version: StrictInt
    last_modified_time: StrictInt = Field(default=0, alias="lastModifiedTime")
