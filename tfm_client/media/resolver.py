"""
Resolves catalog tracks to playable local files, reusing the cache when possible.
"""

import asyncio
import logging
import os
from pathlib import Path

from tfm_client.exceptions import SourceUnavailableError
from tfm_client.models.config import ClientConfig
from tfm_client.models.entries import TrackDescriptor
from tfm_client.storage.cache import TrackCache

from .downloader import TrackDownloader

log = logging.getLogger(__name__)

# Shorter values ("/", "C:/") are placeholders, not real file paths.
MIN_LOCAL_PATH_LENGTH = 6


class LocalPathResolver:
    """
    Turns a TrackDescriptor into a local path by checking, in order, the cache, the
    file the server reports as local, and finally the network.
    """

    def __init__(
        self,
        config: ClientConfig,
        downloader: TrackDownloader | None = None,
        cache: TrackCache | None = None,
    ):
        self.config = config
        self.cache = cache or TrackCache(config.cache_dir, config.min_cache_size)
        self.downloader = downloader or TrackDownloader(
            timeout=config.download_timeout,
            size_tolerance=config.size_tolerance,
        )

    async def close(self) -> None:
        await self.downloader.close()

    async def resolve_local_path(self, descriptor: TrackDescriptor) -> Path:
        """
        Returns a local, playable path for the track.

        Raises:
            ConfigurationError: If the cache directory is not usable, or a download
                is needed and the server URL is not configured.
            SourceUnavailableError: If nothing local is usable and there is no URL.
            TfmClientError: Any download failure, see TrackDownloader.download.
        """
        self.config.require_cache_dir()
        cache_path = self.cache.path_for(
            descriptor.identifier, descriptor.display_name, descriptor.url
        )

        if self.cache.probe(cache_path, descriptor.expected_size):
            return cache_path

        known_path = descriptor.local_path
        if len(known_path) >= MIN_LOCAL_PATH_LENGTH and os.path.isfile(known_path):
            log.info(f"Using stored local path: {known_path}")
            return Path(known_path)

        if not descriptor.url:
            raise SourceUnavailableError(
                f"Track '{descriptor.display_name or descriptor.identifier}' has no "
                "cached copy, no local file and no download URL."
            )

        self.config.require_server_url()
        return await self.downloader.download(
            descriptor.url, cache_path, descriptor.expected_size
        )

    def resolve_local_path_sync(self, descriptor: TrackDescriptor) -> Path:
        """
        Blocking variant of resolve_local_path for callers outside an event loop.
        Blocks for at most the configured download timeout plus local file I/O.
        """

        async def _run() -> Path:
            try:
                return await self.resolve_local_path(descriptor)
            finally:
                await self.downloader.close()

        return asyncio.run(_run())
