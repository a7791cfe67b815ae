"""Test the audio downloader with a mocked yt-dlp"""

from unittest.mock import MagicMock, patch

import pytest
from PIL import Image
from yt_dlp.utils import DownloadError

from conftest import FAKE_AUDIO, make_track

from playlist_archiver.core.exceptions import TransportError
from playlist_archiver.download.downloader import Downloader, convert_thumbnail, find_thumbnail
from playlist_archiver.models import DownloadStatus


def fake_download(write_audio=True, thumbnail_ext="webp", raises=None):
    """YoutubeDL replacement whose download() writes files like yt-dlp would."""

    def factory(options):
        ydl = MagicMock()
        ydl.__enter__.return_value = ydl
        ydl.__exit__.return_value = False
        factory.options = options

        def download(urls):
            if raises is not None:
                raise raises
            default = options["outtmpl"]["default"]
            if write_audio:
                with open(default.replace("%(ext)s", "mp3"), "wb") as f:
                    f.write(FAKE_AUDIO)
            if options.get("writethumbnail") and thumbnail_ext:
                thumb = options["outtmpl"]["thumbnail"].replace("%(ext)s", thumbnail_ext)
                Image.new("RGB", (4, 4), "red").save(thumb, "PNG")
            return 0

        ydl.download.side_effect = download
        return ydl

    return factory


class TestDownloader:
    """Test ensure_downloaded"""

    def test_downloads_into_track_directory(self, file_manager):
        """Test audio and cover land in audio/<id>/"""
        downloader = Downloader(file_manager)
        track = make_track("a")
        factory = fake_download()

        with patch("playlist_archiver.download.downloader.YoutubeDL", side_effect=factory):
            status = downloader.ensure_downloaded(track)

        assert status is DownloadStatus.DOWNLOADED
        assert file_manager.track_path(track).exists()
        assert file_manager.cover_path(track).exists()
        assert not (file_manager.track_dir(track) / "cover.webp").exists()
        assert factory.options["noplaylist"] is True

    def test_existing_file_is_not_downloaded(self, file_manager):
        """Test a present track.mp3 short-circuits the download"""
        downloader = Downloader(file_manager)
        track = make_track("a")
        file_manager.track_dir(track).mkdir(parents=True)
        file_manager.track_path(track).write_bytes(FAKE_AUDIO)

        with patch("playlist_archiver.download.downloader.YoutubeDL") as mock_ydl:
            status = downloader.ensure_downloaded(track)

        assert status is DownloadStatus.ALREADY_DOWNLOADED
        mock_ydl.assert_not_called()

    def test_yt_dlp_failure(self, file_manager):
        """Test yt-dlp errors become TransportError"""
        downloader = Downloader(file_manager)

        with patch(
            "playlist_archiver.download.downloader.YoutubeDL",
            side_effect=fake_download(raises=DownloadError("boom")),
        ):
            with pytest.raises(TransportError):
                downloader.ensure_downloaded(make_track("a"))

    def test_missing_output_file(self, file_manager):
        """Test a download that produced no mp3 is an error"""
        downloader = Downloader(file_manager)

        with patch(
            "playlist_archiver.download.downloader.YoutubeDL",
            side_effect=fake_download(write_audio=False),
        ):
            with pytest.raises(TransportError):
                downloader.ensure_downloaded(make_track("a"))

    def test_thumbnails_disabled(self, file_manager):
        """Test no cover is written when thumbnails are off"""
        downloader = Downloader(file_manager, save_thumbnails=False)
        track = make_track("a")
        factory = fake_download()

        with patch("playlist_archiver.download.downloader.YoutubeDL", side_effect=factory):
            downloader.ensure_downloaded(track)

        assert factory.options["writethumbnail"] is False
        assert not file_manager.cover_path(track).exists()

    def test_missing_thumbnail_is_only_a_warning(self, file_manager, caplog):
        """Test a missing thumbnail does not fail the download"""
        downloader = Downloader(file_manager)

        with patch(
            "playlist_archiver.download.downloader.YoutubeDL",
            side_effect=fake_download(thumbnail_ext=None),
        ):
            with caplog.at_level("WARNING"):
                status = downloader.ensure_downloaded(make_track("a"))

        assert status is DownloadStatus.DOWNLOADED
        assert any("thumbnail" in record.getMessage() for record in caplog.records)


class TestThumbnails:
    """Test thumbnail lookup and conversion"""

    def test_find_thumbnail_missing(self, temp_dir):
        """Test a directory without cover.* raises"""
        with pytest.raises(FileNotFoundError):
            find_thumbnail(temp_dir)

    def test_convert_png_to_jpg(self, temp_dir):
        """Test a non-JPEG thumbnail is converted and removed"""
        Image.new("RGBA", (4, 4)).save(temp_dir / "cover.png", "PNG")

        cover = convert_thumbnail(temp_dir, temp_dir / "cover.jpg")

        assert cover == temp_dir / "cover.jpg"
        assert not (temp_dir / "cover.png").exists()
        with Image.open(cover) as img:
            assert img.format == "JPEG"

    def test_jpeg_is_renamed(self, temp_dir):
        """Test a .jpeg thumbnail is only renamed"""
        Image.new("RGB", (4, 4)).save(temp_dir / "cover.jpeg", "JPEG")

        cover = convert_thumbnail(temp_dir, temp_dir / "cover.jpg")

        assert cover == temp_dir / "cover.jpg"
        assert not (temp_dir / "cover.jpeg").exists()
