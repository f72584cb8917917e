"""
Async client for the TFM mobile catalog API.
"""

import asyncio
import logging
import time
from typing import Any

import aiohttp

from tfm_client.exceptions import (
    HttpError,
    NetworkError,
    RequestTimeoutError,
)
from tfm_client.models.config import ClientConfig
from tfm_client.models.entries import (
    ApiEnvelope,
    Channel,
    CollectionEntry,
    Folder,
    TrackDescriptor,
)

from .aggregator import PaginationAggregator
from .endpoints import (
    RequestSpec,
    ResourceKind,
    local_track_url,
    track_download_url,
    track_stream_url,
)
from .envelope import parse_envelope

log = logging.getLogger(__name__)


class TfmApiClient:
    """
    Async client for the catalog endpoints of a TelegramFileManager server.

    Features:
    - Uniform envelope parsing for every endpoint
    - Transparent aggregation of paginated listings
    - Per-key invalidation of superseded or cancelled listings
    - Connection pooling
    """

    def __init__(self, config: ClientConfig, session: aiohttp.ClientSession | None = None):
        """
        Initializes the API client.

        Args:
            config: Client configuration; the server URL may be filled in later.
            session: Optional externally managed session. When omitted, the client
                creates and owns one.
        """
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._aggregator = PaginationAggregator(self._fetch_page)

    @property
    def aggregator(self) -> PaginationAggregator:
        return self._aggregator

    @property
    def server_url(self) -> str:
        return self.config.server_url

    def set_server_url(self, url: str) -> None:
        self.config.server_url = url
        log.info(f"TFM server URL set to: {self.config.server_url}")

    async def __aenter__(self) -> "TfmApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=aiohttp.ClientTimeout(
                    total=self.config.api_timeout, connect=15
                ),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Cancels pending requests and closes the session if this client owns it."""
        self._aggregator.cancel_all()
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def api_call(self, path: str, params: dict[str, Any] | None = None) -> ApiEnvelope:
        """
        Performs one GET request and returns the successful envelope.

        Raises:
            ConfigurationError: If the server URL is not configured.
            NetworkError: On transport failure or timeout.
            HttpError: On a non-2xx response.
            ProtocolError: On malformed JSON or `success=false`.
        """
        url = self.config.require_server_url() + path
        session = await self._initialize_session()
        start_time = time.monotonic()
        try:
            async with session.get(url, params=params) as r:
                body = await r.read()
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(
                    f"GET {path} {params or ''} -> {r.status} "
                    f"({len(body)} bytes, {duration_ms:.0f} ms)"
                )
                if not 200 <= r.status < 300:
                    raise HttpError(r.status, f"GET {path} failed with HTTP {r.status}.")
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(f"Request to {path} timed out.") from e
        except aiohttp.ClientError as e:
            log.warning(f"Network error for {path}: {e}")
            raise NetworkError(f"Network error: {e}") from e

        return parse_envelope(body)

    async def _fetch_page(self, spec: RequestSpec, page: int) -> ApiEnvelope:
        return await self.api_call(spec.path, spec.params(page))

    async def fetch_collection(self, key: str, spec: RequestSpec) -> list[Any]:
        """
        Fetches a logical listing under `key`, following pagination when the resource
        kind supports it.

        Raises:
            ConfigurationError: Before any network call if the server URL is unset.
            TfmClientError: If any page fails; partial results are never returned.
        """
        self.config.require_server_url()
        if spec.paginated:
            return await self._aggregator.fetch_collection(key, spec)
        return await self._aggregator.fetch_single(spec)

    def cancel_pending_requests(self) -> None:
        self._aggregator.cancel_all()

    # Public API Methods
    async def check_connection(self) -> bool:
        """Returns True if the server answers the channel listing."""
        await self.fetch_channels()
        return True

    async def fetch_channels(self) -> list[Channel]:
        channels = await self.fetch_collection(
            ResourceKind.CHANNELS.value, RequestSpec(ResourceKind.CHANNELS)
        )
        log.info(f"Loaded {len(channels)} channels from TFM")
        return channels

    async def fetch_favorites(self) -> list[Channel]:
        return await self.fetch_collection(
            ResourceKind.FAVORITES.value, RequestSpec(ResourceKind.FAVORITES)
        )

    async def fetch_channel_tracks(
        self, channel_id: str, page_size: int | None = None
    ) -> list[CollectionEntry]:
        spec = RequestSpec(
            ResourceKind.CHANNEL_FILES,
            channel_id=str(channel_id),
            page_size=page_size or self.config.page_size,
        )
        return await self.fetch_collection(spec.key, spec)

    async def fetch_folder_contents(
        self, channel_id: str, folder_id: str, page_size: int | None = None
    ) -> list[CollectionEntry]:
        spec = RequestSpec(
            ResourceKind.FOLDER_CONTENTS,
            channel_id=str(channel_id),
            folder_id=str(folder_id),
            page_size=page_size or self.config.page_size,
        )
        return await self.fetch_collection(spec.key, spec)

    async def fetch_local_folders(self) -> list[Folder]:
        spec = RequestSpec(ResourceKind.LOCAL_FOLDERS)
        return await self.fetch_collection(spec.key, spec)

    async def fetch_local_tracks(self, folder_path: str = "") -> list[CollectionEntry]:
        spec = RequestSpec(
            ResourceKind.LOCAL_FILES, folder_path=folder_path or self.config.local_folder
        )
        return await self.fetch_collection(spec.key, spec)

    async def search_tracks(
        self, query: str, offset: int = 0, limit: int | None = None
    ) -> list[CollectionEntry]:
        limit = limit or self.config.search_page_size
        spec = RequestSpec(
            ResourceKind.SEARCH,
            query=query,
            page_size=limit,
            first_page=offset // limit + 1,
        )
        return await self.fetch_collection(spec.key, spec)

    def track_stream_url(self, channel_id: str, file_id: str) -> str:
        return track_stream_url(self.config.server_url, channel_id, file_id)

    def track_download_url(self, channel_id: str, file_id: str) -> str:
        return track_download_url(self.config.server_url, channel_id, file_id)

    def local_track_url(self, file_path: str) -> str:
        return local_track_url(self.config.server_url, file_path)

    def descriptor_for(self, entry: CollectionEntry) -> TrackDescriptor:
        """Builds the download descriptor for a catalog entry."""
        fallback = ""
        if entry.channel_id and entry.id and self.config.server_url:
            fallback = self.track_download_url(entry.channel_id, entry.id)
        return TrackDescriptor.from_entry(entry, fallback_url=fallback)
