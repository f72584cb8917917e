"""
Request descriptions for the catalog endpoints.

Each `ResourceKind` knows its path, its query parameters, whether it continues across
pages, and how to turn an envelope's items into models, including any context fields
(such as the parent channel) that only the caller knows.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from tfm_client.exceptions import ProtocolError
from tfm_client.models.entries import ApiEnvelope, Channel, CollectionEntry, Folder

from .envelope import extract_items

log = logging.getLogger(__name__)

CHANNELS_PATH = "/api/mobile/channels"
FAVORITES_PATH = "/api/mobile/channels/favorites"
CHANNEL_FILES_PATH = "/api/mobile/channels/{channel_id}/files"
LOCAL_FILES_PATH = "/api/mobile/files/local"
STREAM_PATH = "/api/mobile/stream/tfm/{channel_id}/{file_id}"
DOWNLOAD_PATH = "/api/mobile/stream/download/{channel_id}/{file_id}"
LOCAL_STREAM_PATH = "/api/mobile/stream/local"

# Search runs against the files endpoint of the pseudo-channel 0 (all channels).
SEARCH_CHANNEL_ID = "0"


class ResourceKind(str, Enum):
    """The logical listings the catalog exposes."""

    CHANNELS = "channels"
    FAVORITES = "favorites"
    CHANNEL_FILES = "channel_files"
    FOLDER_CONTENTS = "folder_contents"
    LOCAL_FOLDERS = "local_folders"
    LOCAL_FILES = "local_files"
    SEARCH = "search"


PAGINATED_KINDS = frozenset({ResourceKind.CHANNEL_FILES, ResourceKind.FOLDER_CONTENTS})


@dataclass(frozen=True)
class RequestSpec:
    """One logical request: the resource kind plus its base parameters."""

    kind: ResourceKind
    channel_id: str = ""
    folder_id: str = ""
    folder_path: str = ""
    query: str = ""
    page_size: int = 100
    first_page: int = 1

    @property
    def paginated(self) -> bool:
        """Whether `hasNext` in a response triggers a request for the next page."""
        return self.kind in PAGINATED_KINDS

    @property
    def key(self) -> str:
        """The default aggregation key for this request."""
        if self.kind is ResourceKind.CHANNEL_FILES:
            return f"channel:{self.channel_id}"
        if self.kind is ResourceKind.FOLDER_CONTENTS:
            return f"folder:{self.channel_id}:{self.folder_id}"
        if self.kind is ResourceKind.LOCAL_FILES:
            return f"local:{self.folder_path}"
        if self.kind is ResourceKind.SEARCH:
            return f"search:{self.query}"
        return self.kind.value

    @property
    def path(self) -> str:
        if self.kind is ResourceKind.CHANNELS:
            return CHANNELS_PATH
        if self.kind is ResourceKind.FAVORITES:
            return FAVORITES_PATH
        if self.kind in (ResourceKind.LOCAL_FOLDERS, ResourceKind.LOCAL_FILES):
            return LOCAL_FILES_PATH
        channel_id = (
            SEARCH_CHANNEL_ID if self.kind is ResourceKind.SEARCH else self.channel_id
        )
        return CHANNEL_FILES_PATH.format(channel_id=quote(channel_id, safe=""))

    def params(self, page: int) -> dict[str, str]:
        """Builds the query parameters for the given page number."""
        if self.kind is ResourceKind.CHANNEL_FILES:
            return {"Page": str(page), "PageSize": str(self.page_size)}
        if self.kind is ResourceKind.FOLDER_CONTENTS:
            return {
                "folderId": self.folder_id,
                "Page": str(page),
                "PageSize": str(self.page_size),
            }
        if self.kind is ResourceKind.SEARCH:
            return {
                "SearchText": self.query,
                "Page": str(page),
                "PageSize": str(self.page_size),
            }
        if self.kind is ResourceKind.LOCAL_FILES:
            params = {"Path": self.folder_path} if self.folder_path else {}
            params.update(
                {
                    "filter": "audio_folders",
                    "page": str(page),
                    "pageSize": str(self.page_size),
                    "sortBy": "name",
                    "sortDescending": "false",
                }
            )
            return params
        return {}

    def parse_items(self, envelope: ApiEnvelope) -> list[BaseModel]:
        """
        Converts the envelope's item array into models for this resource kind.

        Raises:
            ProtocolError: If an item cannot be parsed.
        """
        handler = _ITEM_HANDLERS[self.kind]
        try:
            return handler(self, extract_items(envelope.data))
        except ValidationError as e:
            raise ProtocolError(f"Malformed {self.kind.value} item: {e}") from e


def _channels(spec: RequestSpec, items: list[dict[str, Any]]) -> list[BaseModel]:
    return [Channel.model_validate(item) for item in items]


def _favorites(spec: RequestSpec, items: list[dict[str, Any]]) -> list[BaseModel]:
    return [
        Channel.model_validate(item).model_copy(update={"is_favorite": True})
        for item in items
    ]


def _channel_entries(
    spec: RequestSpec, items: list[dict[str, Any]]
) -> list[BaseModel]:
    return [
        CollectionEntry.model_validate(item).model_copy(
            update={"channel_id": spec.channel_id}
        )
        for item in items
    ]


def _local_folders(spec: RequestSpec, items: list[dict[str, Any]]) -> list[BaseModel]:
    return [Folder.model_validate(item) for item in items if item.get("isFolder") is True]


def _entries(spec: RequestSpec, items: list[dict[str, Any]]) -> list[BaseModel]:
    return [CollectionEntry.model_validate(item) for item in items]


_ITEM_HANDLERS: dict[
    ResourceKind, Callable[[RequestSpec, list[dict[str, Any]]], list[BaseModel]]
] = {
    ResourceKind.CHANNELS: _channels,
    ResourceKind.FAVORITES: _favorites,
    ResourceKind.CHANNEL_FILES: _channel_entries,
    ResourceKind.FOLDER_CONTENTS: _channel_entries,
    ResourceKind.LOCAL_FOLDERS: _local_folders,
    ResourceKind.LOCAL_FILES: _entries,
    ResourceKind.SEARCH: _entries,
}


def track_stream_url(server_url: str, channel_id: str, file_id: str) -> str:
    return server_url + STREAM_PATH.format(channel_id=channel_id, file_id=file_id)


def track_download_url(server_url: str, channel_id: str, file_id: str) -> str:
    return server_url + DOWNLOAD_PATH.format(channel_id=channel_id, file_id=file_id)


def local_track_url(server_url: str, file_path: str) -> str:
    """
    Builds the streaming URL for a file of the server's local mirror. The server
    expects the path percent-encoded twice.
    """
    encoded = quote(quote(file_path, safe=""), safe="")
    return f"{server_url}{LOCAL_STREAM_PATH}?path={encoded}"
