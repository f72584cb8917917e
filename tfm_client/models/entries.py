"""
Pydantic models for catalog items and the response envelope that wraps them.

The server speaks camelCase JSON; every model accepts those keys directly and exposes
snake_case attributes. Models are frozen once parsed.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel


class _CatalogModel(BaseModel):
    """Shared configuration for models parsed from server JSON."""

    class Config:
        """Pydantic model configuration."""

        alias_generator = to_camel
        populate_by_name = True
        frozen = True
        extra = "ignore"


def _as_text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def _as_int(v: Any) -> int:
    if v is None or v == "":
        return 0
    try:
        return int(v)
    except (TypeError, ValueError):
        return 0


def _as_bool(v: Any) -> bool:
    return v if isinstance(v, bool) else False


def _as_datetime(v: Any) -> datetime | None:
    """Parses ISO 8601 timestamps such as '2024-04-26T09:00:29Z'."""
    if isinstance(v, datetime):
        return v
    if not isinstance(v, str) or not v:
        return None
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(v)
    except ValueError:
        return None


class Channel(_CatalogModel):
    """A remote channel holding music files."""

    id: int = 0
    name: str = ""
    image_url: str = ""
    is_owner: bool = False
    can_post: bool = False
    is_favorite: bool = False
    type: str = ""
    file_count: int = 0

    @field_validator("name", "image_url", "type", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("id", "file_count", mode="before")
    @classmethod
    def _number(cls, v: Any) -> int:
        return _as_int(v)

    @field_validator("is_owner", "can_post", "is_favorite", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return _as_bool(v)


class Folder(_CatalogModel):
    """A folder of the server's local filesystem mirror."""

    id: str = ""
    name: str = ""
    path: str = ""
    parent_id: str = ""
    is_folder: bool = False
    has_children: bool = False

    @field_validator("id", "name", "path", "parent_id", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("is_folder", "has_children", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return _as_bool(v)


class CollectionEntry(_CatalogModel):
    """
    One catalog item: a file or folder inside a channel, or a local filesystem item.

    `channel_id` is not part of the server payload; it is stamped from the request
    context by the aggregator.
    """

    id: str = ""
    channel_id: str = ""
    name: str = ""
    path: str = ""
    parent_id: str = ""
    size: int = 0
    type: str = ""
    category: str = ""
    is_file: bool = False
    is_folder: bool = False
    has_children: bool = False
    stream_url: str = ""
    download_url: str = ""
    thumbnail_url: str = ""
    date_created: datetime | None = None
    date_modified: datetime | None = None

    @field_validator(
        "id",
        "channel_id",
        "name",
        "path",
        "parent_id",
        "type",
        "category",
        "stream_url",
        "download_url",
        "thumbnail_url",
        mode="before",
    )
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("size", mode="before")
    @classmethod
    def _number(cls, v: Any) -> int:
        return _as_int(v)

    @field_validator("is_file", "is_folder", "has_children", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return _as_bool(v)

    @field_validator("date_created", "date_modified", mode="before")
    @classmethod
    def _timestamp(cls, v: Any) -> datetime | None:
        return _as_datetime(v)


class PaginationEnvelope(_CatalogModel):
    """Paging metadata of one response. Missing fields take the server defaults."""

    page: int = 1
    page_size: int = 100
    total_items: int = 0
    total_pages: int = 1
    has_next: bool = False
    has_previous: bool = False

    @field_validator("page", "page_size", "total_items", "total_pages", mode="before")
    @classmethod
    def _number(cls, v: Any, info) -> int:
        if not isinstance(v, (int, float)) or isinstance(v, bool):
            return cls.model_fields[info.field_name].default
        return int(v)

    @field_validator("has_next", "has_previous", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return _as_bool(v)


class ApiEnvelope(_CatalogModel):
    """The `{success, data, error, message, pagination}` wrapper of every response."""

    success: bool = False
    data: Any = None
    error: str = ""
    message: str = ""
    pagination: PaginationEnvelope = PaginationEnvelope()

    @field_validator("success", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return _as_bool(v)

    @field_validator("error", "message", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else _as_text(v)

    @field_validator("pagination", mode="before")
    @classmethod
    def _pagination(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, PaginationEnvelope)) else {}

    @property
    def error_text(self) -> str:
        """The most specific failure description the server provided."""
        return self.error or self.message or "Unknown API error"


class TrackDescriptor(BaseModel):
    """Everything needed to turn a catalog track into a playable local file."""

    identifier: str
    url: str = ""
    local_path: str = ""
    expected_size: int = 0
    display_name: str = ""

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @classmethod
    def from_entry(
        cls, entry: CollectionEntry, fallback_url: str = ""
    ) -> "TrackDescriptor":
        """
        Builds a descriptor for a catalog entry.

        The entry's own download URL wins, then `fallback_url` (normally the built
        download URL for the entry's channel), then its stream URL.
        """
        return cls(
            identifier=entry.id,
            url=entry.download_url or fallback_url or entry.stream_url,
            local_path=entry.path,
            expected_size=max(entry.size, 0),
            display_name=entry.name,
        )
