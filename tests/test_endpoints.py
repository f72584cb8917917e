"""Tests for api/endpoints.py."""

from tfm_client.api.endpoints import (
    RequestSpec,
    ResourceKind,
    local_track_url,
    track_download_url,
    track_stream_url,
)

from conftest import SERVER, envelope


class TestRequestSpec:
    def test_channel_files(self) -> None:
        spec = RequestSpec(ResourceKind.CHANNEL_FILES, channel_id="-100123", page_size=50)
        assert spec.paginated is True
        assert spec.key == "channel:-100123"
        assert spec.path == "/api/mobile/channels/-100123/files"
        assert spec.params(3) == {"Page": "3", "PageSize": "50"}

    def test_folder_contents(self) -> None:
        spec = RequestSpec(ResourceKind.FOLDER_CONTENTS, channel_id="7", folder_id="f9")
        assert spec.paginated is True
        assert spec.key == "folder:7:f9"
        assert spec.path == "/api/mobile/channels/7/files"
        assert spec.params(1) == {"folderId": "f9", "Page": "1", "PageSize": "100"}

    def test_search(self) -> None:
        spec = RequestSpec(ResourceKind.SEARCH, query="miles davis", page_size=20)
        assert spec.paginated is False
        assert spec.key == "search:miles davis"
        assert spec.path == "/api/mobile/channels/0/files"
        assert spec.params(2) == {
            "SearchText": "miles davis",
            "Page": "2",
            "PageSize": "20",
        }

    def test_local_files_with_path(self) -> None:
        spec = RequestSpec(ResourceKind.LOCAL_FILES, folder_path="D:/Music")
        assert spec.paginated is False
        assert spec.key == "local:D:/Music"
        assert spec.path == "/api/mobile/files/local"
        params = spec.params(1)
        assert params["Path"] == "D:/Music"
        assert params["filter"] == "audio_folders"
        assert params["sortBy"] == "name"
        assert params["sortDescending"] == "false"

    def test_local_files_root_has_no_path_param(self) -> None:
        assert "Path" not in RequestSpec(ResourceKind.LOCAL_FILES).params(1)

    def test_channels_and_favorites(self) -> None:
        channels = RequestSpec(ResourceKind.CHANNELS)
        favorites = RequestSpec(ResourceKind.FAVORITES)
        assert channels.path == "/api/mobile/channels"
        assert favorites.path == "/api/mobile/channels/favorites"
        assert channels.params(1) == {}
        assert channels.key == "channels"
        assert not channels.paginated and not favorites.paginated


class TestParseItems:
    def test_channel_entries_are_stamped_with_channel(self) -> None:
        spec = RequestSpec(ResourceKind.CHANNEL_FILES, channel_id="42")
        items = spec.parse_items(
            envelope({"success": True, "data": [{"id": "a", "name": "a.mp3"}]})
        )
        assert [e.channel_id for e in items] == ["42"]

    def test_favorites_are_flagged(self) -> None:
        spec = RequestSpec(ResourceKind.FAVORITES)
        items = spec.parse_items(
            envelope({"success": True, "data": [{"id": 1, "name": "Jazz"}]})
        )
        assert items[0].is_favorite is True

    def test_local_folders_skip_files(self) -> None:
        spec = RequestSpec(ResourceKind.LOCAL_FOLDERS)
        items = spec.parse_items(
            envelope(
                {
                    "success": True,
                    "data": {
                        "items": [
                            {"id": "1", "name": "Albums", "isFolder": True},
                            {"id": "2", "name": "song.mp3", "isFolder": False},
                        ]
                    },
                }
            )
        )
        assert [f.name for f in items] == ["Albums"]


class TestUrls:
    def test_stream_and_download(self) -> None:
        assert (
            track_stream_url(SERVER, "5", "abc")
            == f"{SERVER}/api/mobile/stream/tfm/5/abc"
        )
        assert (
            track_download_url(SERVER, "5", "abc")
            == f"{SERVER}/api/mobile/stream/download/5/abc"
        )

    def test_local_path_is_encoded_twice(self) -> None:
        assert (
            local_track_url(SERVER, "/music/a b.mp3")
            == f"{SERVER}/api/mobile/stream/local?path=%252Fmusic%252Fa%2520b.mp3"
        )
