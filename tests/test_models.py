"""Test track and playlist models"""

import pytest

from playlist_archiver.core.exceptions import ParseError
from playlist_archiver.models import Playlist, Track, sort_by_position


class TestTrack:
    """Test Track parsing and serialization"""

    def test_from_info_uses_original_url_and_playlist_index(self):
        """Test yt-dlp field names map onto Track fields"""
        track = Track.from_info({
            "id": 123,
            "uploader": "Someone",
            "title": "Song",
            "original_url": "https://soundcloud.com/someone/song",
            "url": "https://cdn.example/stream.mp3",
            "playlist_index": "4",
        })

        assert track.id == "123"
        assert track.url == "https://soundcloud.com/someone/song"
        assert track.position == 4

    def test_from_info_falls_back_to_webpage_url(self):
        """Test webpage_url is used when original_url is absent"""
        track = Track.from_info({"id": "a", "webpage_url": "https://x/a"})

        assert track.url == "https://x/a"
        assert track.position is None
        assert track.title == ""

    def test_from_info_rejects_missing_id(self):
        """Test a track without id is a parse error"""
        with pytest.raises(ParseError):
            Track.from_info({"original_url": "https://x/a"})

    def test_from_info_rejects_negative_position(self):
        """Test positions must be non-negative"""
        with pytest.raises(ParseError):
            Track.from_info({"id": "a", "original_url": "https://x/a", "playlist_index": -1})

    def test_to_dict_uses_index_field_names(self):
        """Test serialized keys match the index format"""
        track = Track(id="a", uploader="u", title="t", url="https://x/a", position=2)

        assert track.to_dict() == {
            "id": "a",
            "uploader": "u",
            "title": "t",
            "original_url": "https://x/a",
            "playlist_index": 2,
        }

    def test_to_dict_from_info_preserves_track(self):
        """Test a stored track loads back equal"""
        track = Track(id="a", uploader="u", title="t", url="https://x/a", position=0)

        assert Track.from_info(track.to_dict()) == track


class TestPlaylist:
    """Test Playlist parsing"""

    def test_from_info_skips_null_entries(self):
        """Test unresolvable entries are dropped"""
        playlist = Playlist.from_info({
            "id": "pl",
            "title": "Mix",
            "original_url": "https://x/sets/mix",
            "playlist_count": 3,
            "entries": [
                {"id": "a", "original_url": "https://x/a", "playlist_index": 1},
                None,
                {"id": "c", "original_url": "https://x/c", "playlist_index": 3},
            ],
        })

        assert [t.id for t in playlist.entries] == ["a", "c"]
        assert playlist.track_count == 3

    def test_from_info_sorts_entries_by_position(self):
        """Test entries end up in position order"""
        playlist = Playlist.from_info({
            "id": "pl",
            "entries": [
                {"id": "b", "original_url": "https://x/b", "playlist_index": 2},
                {"id": "a", "original_url": "https://x/a", "playlist_index": 1},
            ],
        })

        assert [t.id for t in playlist.entries] == ["a", "b"]
        assert playlist.title == "pl"

    def test_from_info_assigns_missing_positions(self):
        """Test entries without playlist_index get their 1-based order"""
        playlist = Playlist.from_info({
            "id": "pl",
            "entries": [
                {"id": "a", "original_url": "https://x/a"},
                {"id": "b", "original_url": "https://x/b"},
            ],
        })

        assert [t.position for t in playlist.entries] == [1, 2]

    def test_from_info_requires_id(self):
        """Test a manifest without id is a parse error"""
        with pytest.raises(ParseError):
            Playlist.from_info({"entries": []})

    def test_from_info_rejects_non_list_entries(self):
        """Test entries must be a list"""
        with pytest.raises(ParseError):
            Playlist.from_info({"id": "pl", "entries": {"a": 1}})

    def test_sort_by_position_puts_unpositioned_last(self):
        """Test tracks without a position keep their order at the end"""
        a = Track(id="a", uploader="", title="", url="u", position=None)
        b = Track(id="b", uploader="", title="", url="u", position=5)
        c = Track(id="c", uploader="", title="", url="u", position=1)

        assert [t.id for t in sort_by_position([a, b, c])] == ["c", "b", "a"]

    def test_repeated_track_keeps_first_position(self, caplog):
        """Test a track listed twice keeps only its lowest-position entry"""
        a_first = Track(id="a", uploader="", title="first", url="u", position=1)
        b = Track(id="b", uploader="", title="", url="u", position=2)
        a_again = Track(id="a", uploader="", title="again", url="u", position=3)

        with caplog.at_level("WARNING"):
            playlist = Playlist(id="pl", title="", url="", entries=[a_again, b, a_first])

        assert [(t.id, t.position) for t in playlist.entries] == [("a", 1), ("b", 2)]
        assert playlist.entries[0].title == "first"
        assert any("more than once" in record.getMessage() for record in caplog.records)
