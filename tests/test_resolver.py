"""Tests for media/resolver.py."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from tfm_client.exceptions import ConfigurationError, HttpError, SourceUnavailableError
from tfm_client.media.downloader import TrackDownloader
from tfm_client.media.resolver import LocalPathResolver
from tfm_client.models.config import ClientConfig
from tfm_client.models.entries import TrackDescriptor

from conftest import FakeResponse, FakeSession

URL = "http://tfm.local:5000/api/mobile/stream/download/1/abc"


def descriptor(**fields) -> TrackDescriptor:
    values = {"identifier": "abc", "url": URL, "display_name": "Song.mp3"}
    values.update(fields)
    return TrackDescriptor(**values)


class TestResolveLocalPath:
    def test_valid_cache_entry_skips_network(self, config: ClientConfig) -> None:
        downloader = AsyncMock()
        resolver = LocalPathResolver(config, downloader=downloader)
        cached = resolver.cache.path_for("abc", "Song.mp3", URL)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"\x00" * 5000)

        path = asyncio.run(resolver.resolve_local_path(descriptor(expected_size=5000)))

        assert path == cached
        downloader.download.assert_not_awaited()

    def test_invalid_cache_entry_is_downloaded_again(
        self, config: ClientConfig
    ) -> None:
        downloader = AsyncMock()
        resolver = LocalPathResolver(config, downloader=downloader)
        cached = resolver.cache.path_for("abc", "Song.mp3", URL)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"\x00" * 4999)
        downloader.download.return_value = cached

        asyncio.run(resolver.resolve_local_path(descriptor(expected_size=5000)))

        downloader.download.assert_awaited_once_with(URL, cached, 5000)

    def test_known_local_file(self, config: ClientConfig, tmp_path: Path) -> None:
        local = tmp_path / "library" / "song.flac"
        local.parent.mkdir()
        local.write_bytes(b"fLaC")
        downloader = AsyncMock()
        resolver = LocalPathResolver(config, downloader=downloader)

        path = asyncio.run(
            resolver.resolve_local_path(descriptor(local_path=str(local)))
        )

        assert path == local
        downloader.download.assert_not_awaited()

    def test_placeholder_local_path_is_ignored(self, config: ClientConfig) -> None:
        resolver = LocalPathResolver(config, downloader=AsyncMock())
        with pytest.raises(SourceUnavailableError):
            asyncio.run(resolver.resolve_local_path(descriptor(url="", local_path="/")))

    def test_no_source(self, config: ClientConfig) -> None:
        resolver = LocalPathResolver(config, downloader=AsyncMock())
        with pytest.raises(SourceUnavailableError):
            asyncio.run(resolver.resolve_local_path(descriptor(url="")))

    def test_http_error_writes_nothing(self, config: ClientConfig) -> None:
        downloader = TrackDownloader(session=FakeSession(FakeResponse(status=404)))
        resolver = LocalPathResolver(config, downloader=downloader)

        with pytest.raises(HttpError) as excinfo:
            asyncio.run(resolver.resolve_local_path(descriptor()))
        assert excinfo.value.status == 404
        assert list(config.cache_dir.iterdir()) == []

    def test_download_needs_server_url(self, tmp_path: Path) -> None:
        session = FakeSession(
            FakeResponse(status=200, body=b"ID3" + b"\x00" * 4997)
        )
        config = ClientConfig(server_url="", cache_dir=tmp_path / "c")
        resolver = LocalPathResolver(
            config, downloader=TrackDownloader(session=session)
        )

        with pytest.raises(ConfigurationError):
            asyncio.run(resolver.resolve_local_path(descriptor()))
        assert session.calls == []
        assert list(config.cache_dir.iterdir()) == []

    def test_cached_track_resolves_without_server_url(self, tmp_path: Path) -> None:
        config = ClientConfig(server_url="", cache_dir=tmp_path / "c")
        downloader = AsyncMock()
        resolver = LocalPathResolver(config, downloader=downloader)
        cached = resolver.cache.path_for("abc", "Song.mp3", URL)
        cached.parent.mkdir(parents=True)
        cached.write_bytes(b"\x00" * 5000)

        path = asyncio.run(resolver.resolve_local_path(descriptor(expected_size=5000)))

        assert path == cached
        downloader.download.assert_not_awaited()

    def test_unusable_cache_dir(self) -> None:
        config = ClientConfig(cache_dir="")
        resolver = LocalPathResolver(config, downloader=AsyncMock())
        with pytest.raises(ConfigurationError):
            asyncio.run(resolver.resolve_local_path(descriptor()))


class TestResolveSync:
    def test_downloads_and_returns_path(self, config: ClientConfig) -> None:
        body = b"ID3" + b"\x00" * 4997
        response = FakeResponse(
            status=200, body=body, headers={"Content-Type": "audio/mpeg"}
        )
        resolver = LocalPathResolver(
            config, downloader=TrackDownloader(session=FakeSession(response))
        )

        path = resolver.resolve_local_path_sync(descriptor(expected_size=5000))

        assert path.parent == config.cache_dir
        assert path.name == "abc.mp3"
        assert path.read_bytes() == body
