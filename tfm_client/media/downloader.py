"""
Handles the low-level downloading of track files over HTTP, with size validation
and an all-or-nothing write into the cache.
"""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles
import aiohttp

from tfm_client.exceptions import (
    DownloadTimeoutError,
    HttpError,
    NetworkError,
    TruncatedDownloadError,
    UnexpectedContentTypeError,
    WriteError,
)

from .integrity import FileIntegrityChecker

log = logging.getLogger(__name__)


def _parse_length(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


class TrackDownloader:
    """A single-shot file downloader. Retries are left to the caller."""

    def __init__(
        self,
        timeout: float = 60.0,
        size_tolerance: float = 0.99,
        session: aiohttp.ClientSession | None = None,
    ):
        """
        Args:
            timeout: Upper bound in seconds for the whole request, body included.
            size_tolerance: Smallest accepted fraction of an announced size.
            session: Optional externally managed session.
        """
        self.timeout = timeout
        self.size_tolerance = size_tolerance
        self._session = session
        self._owns_session = session is None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout, sock_connect=15)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Closes the session if this downloader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def download(self, url: str, destination: Path, expected_size: int = 0) -> Path:
        """
        Downloads `url` into `destination`.

        Raises:
            DownloadTimeoutError: If the transfer exceeds the timeout.
            NetworkError: On transport failure.
            HttpError: On any status other than 200.
            UnexpectedContentTypeError: If the server returned an HTML page.
            TruncatedDownloadError: If the body is empty or too short.
            WriteError: If the file could not be written completely.
        """
        log.info(f"Downloading track from: {url} to: {destination} expected size: {expected_size}")
        data, content_length, content_type = await self.fetch(url)
        self.validate(data, content_length, expected_size)
        await self.write(data, destination)

        if not await asyncio.to_thread(
            FileIntegrityChecker.check_decodable, str(destination)
        ):
            log.warning(
                f"Stored '{destination.name}' anyway; the decoder will decide if it plays."
            )
        log.info(
            f"Successfully downloaded {len(data)} bytes to {destination} "
            f"(Content-Type: {content_type})"
        )
        return destination

    async def fetch(self, url: str) -> tuple[bytes, int, str]:
        """
        Performs the GET request.

        Returns:
            The body, the announced Content-Length (0 if absent) and the content type.
        """
        session = await self._initialize_session()
        try:
            return await asyncio.wait_for(self._get(session, url), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            log.warning(f"Download timed out for {url}")
            raise DownloadTimeoutError(
                f"Download did not finish within {self.timeout:g} seconds."
            ) from e
        except aiohttp.ClientError as e:
            log.warning(f"Download error: {e}")
            raise NetworkError(f"Download failed: {e}") from e

    async def _get(
        self, session: aiohttp.ClientSession, url: str
    ) -> tuple[bytes, int, str]:
        async with session.get(
            url, headers={"Accept": "*/*"}, allow_redirects=True
        ) as response:
            if response.status != 200:
                log.warning(f"Download failed with HTTP status: {response.status}")
                raise HttpError(response.status)

            content_type = response.headers.get("Content-Type", "")
            if "text/html" in content_type.lower():
                log.warning(
                    "Server returned HTML instead of audio file. "
                    f"Content-Type: {content_type}"
                )
                raise UnexpectedContentTypeError(
                    f"Server returned an HTML page ({content_type}) instead of audio."
                )

            content_length = _parse_length(response.headers.get("Content-Length"))
            data = await response.read()
        return data, content_length, content_type

    def validate(self, data: bytes, content_length: int = 0, expected_size: int = 0) -> None:
        """
        Checks the body against the announced sizes and sniffs its container.

        Raises:
            TruncatedDownloadError: If the body is empty or shorter than the tolerated
            fraction of a known size.
        """
        if not data:
            raise TruncatedDownloadError("Downloaded file is empty.")

        received = len(data)
        for source, announced in (
            ("Content-Length", content_length),
            ("catalog size", expected_size),
        ):
            if announced <= 0 or received == announced:
                continue
            log.warning(
                f"Downloaded size mismatch with {source}: expected {announced} "
                f"got {received}"
            )
            if received < announced * self.size_tolerance:
                raise TruncatedDownloadError(
                    f"Download appears truncated: got {received} of {announced} bytes "
                    f"announced by {source}."
                )

        if FileIntegrityChecker.sniff_container(data) is None:
            log.warning(
                "Downloaded file doesn't appear to be a valid audio file. "
                f"First bytes: {data[:16].hex()}"
            )

    async def write(self, data: bytes, destination: Path) -> Path:
        """
        Writes `data` next to `destination`, verifies it, then moves it into place.

        Raises:
            WriteError: If the write is short, the on-disk size differs, or the file
            system rejects the operation. No partial file is left behind.
        """
        partial = destination.with_name(destination.name + ".part")
        try:
            async with aiofiles.open(partial, "wb") as f:
                written = await f.write(data)
                await f.flush()

            if written != len(data):
                raise WriteError(
                    f"Failed to write complete file, wrote {written} of {len(data)}"
                )
            on_disk = os.path.getsize(partial)
            if on_disk != len(data):
                raise WriteError(
                    f"File size verification failed: expected {len(data)} got {on_disk}"
                )
            os.replace(partial, destination)
        except WriteError as e:
            log.warning(str(e))
            self._remove(partial)
            raise
        except OSError as e:
            log.warning(f"Failed to write {destination}: {e}")
            self._remove(partial)
            raise WriteError(f"Failed to write {destination}: {e}") from e
        return destination

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.debug(f"Could not remove partial file '{path}': {e}")
