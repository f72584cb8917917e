"""Tests for media/downloader.py and media/integrity.py."""

import asyncio
from pathlib import Path

import aiohttp
import pytest

from tfm_client.exceptions import (
    DownloadTimeoutError,
    HttpError,
    NetworkError,
    TruncatedDownloadError,
    UnexpectedContentTypeError,
    WriteError,
)
from tfm_client.media.downloader import TrackDownloader
from tfm_client.media.integrity import FileIntegrityChecker

from conftest import FakeResponse, FakeSession

URL = "http://tfm.local:5000/api/mobile/stream/download/1/abc"
MP3 = b"ID3" + b"\x00" * 9997


def audio_response(body: bytes = MP3, **headers) -> FakeResponse:
    return FakeResponse(
        status=200, body=body, headers={"Content-Type": "audio/mpeg", **headers}
    )


class TestValidate:
    def test_within_tolerance(self) -> None:
        TrackDownloader().validate(b"ID3" + b"\x00" * 9897, expected_size=10000)

    def test_below_tolerance(self) -> None:
        with pytest.raises(TruncatedDownloadError):
            TrackDownloader().validate(b"ID3" + b"\x00" * 9896, expected_size=10000)

    def test_content_length_checked(self) -> None:
        with pytest.raises(TruncatedDownloadError, match="Content-Length"):
            TrackDownloader().validate(MP3[:5000], content_length=10000)

    def test_empty_body(self) -> None:
        with pytest.raises(TruncatedDownloadError, match="empty"):
            TrackDownloader().validate(b"")

    def test_unknown_sizes_accept_any_body(self) -> None:
        TrackDownloader().validate(b"not audio at all")


class TestDownload:
    def test_writes_file(self, tmp_path: Path) -> None:
        session = FakeSession(audio_response(**{"Content-Length": "10000"}))
        downloader = TrackDownloader(session=session)
        destination = tmp_path / "abc.mp3"

        result = asyncio.run(downloader.download(URL, destination, expected_size=10000))

        assert result == destination
        assert destination.read_bytes() == MP3
        assert not (tmp_path / "abc.mp3.part").exists()
        url, kwargs = session.calls[0]
        assert url == URL
        assert kwargs["headers"] == {"Accept": "*/*"}
        assert kwargs["allow_redirects"] is True

    def test_non_audio_body_is_still_stored(self, tmp_path: Path) -> None:
        downloader = TrackDownloader(session=FakeSession(audio_response(b"x" * 4000)))
        destination = tmp_path / "t.mp3"

        asyncio.run(downloader.download(URL, destination))

        assert destination.stat().st_size == 4000

    def test_http_error(self, tmp_path: Path) -> None:
        downloader = TrackDownloader(session=FakeSession(FakeResponse(status=404)))
        destination = tmp_path / "t.mp3"

        with pytest.raises(HttpError) as excinfo:
            asyncio.run(downloader.download(URL, destination))
        assert excinfo.value.status == 404
        assert not destination.exists()

    def test_html_response(self, tmp_path: Path) -> None:
        response = FakeResponse(
            status=200,
            body=b"<html>login</html>",
            headers={"Content-Type": "text/html; charset=utf-8"},
        )
        downloader = TrackDownloader(session=FakeSession(response))

        with pytest.raises(UnexpectedContentTypeError):
            asyncio.run(downloader.download(URL, tmp_path / "t.mp3"))
        assert list(tmp_path.iterdir()) == []

    def test_truncated_download_writes_nothing(self, tmp_path: Path) -> None:
        downloader = TrackDownloader(session=FakeSession(audio_response(MP3[:100])))

        with pytest.raises(TruncatedDownloadError):
            asyncio.run(downloader.download(URL, tmp_path / "t.mp3", expected_size=10000))
        assert list(tmp_path.iterdir()) == []

    def test_timeout(self, tmp_path: Path) -> None:
        downloader = TrackDownloader(session=FakeSession(asyncio.TimeoutError()))

        with pytest.raises(DownloadTimeoutError):
            asyncio.run(downloader.download(URL, tmp_path / "t.mp3"))

    def test_transport_error(self, tmp_path: Path) -> None:
        session = FakeSession(aiohttp.ClientConnectionError("reset"))
        downloader = TrackDownloader(session=session)

        with pytest.raises(NetworkError):
            asyncio.run(downloader.download(URL, tmp_path / "t.mp3"))

    def test_write_failure_leaves_no_partial(self, tmp_path: Path) -> None:
        destination = tmp_path / "missing" / "t.mp3"

        with pytest.raises(WriteError):
            asyncio.run(TrackDownloader().write(MP3, destination))
        assert not destination.exists()
        assert not destination.with_name("t.mp3.part").exists()

    def test_close_keeps_external_session(self) -> None:
        session = FakeSession()
        asyncio.run(TrackDownloader(session=session).close())
        assert session.closed is False


class TestIntegrity:
    @pytest.mark.parametrize(
        "data, expected",
        [
            (b"fLaC\x00\x00", "flac"),
            (b"ID3\x04\x00", "mp3"),
            (b"\xff\xfb\x90\x00", "mp3"),
            (b"OggS\x00", "ogg"),
            (b"RIFF\x00\x00", "wav"),
            (b"<html>", None),
            (b"ab", None),
        ],
    )
    def test_sniff_container(self, data: bytes, expected: str | None) -> None:
        assert FileIntegrityChecker.sniff_container(data) == expected

    def test_undecodable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "noise.mp3"
        path.write_bytes(b"\x00" * 64)
        assert FileIntegrityChecker.check_decodable(str(path)) is False
