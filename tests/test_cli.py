"""Test the command-line interface"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import SOURCE_URL, make_playlist

from playlist_archiver.cli import cli
from playlist_archiver.core.exceptions import TransportError
from playlist_archiver.core.index import ArchiveIndex


@pytest.fixture
def config_file(temp_dir):
    path = temp_dir / "config.yaml"
    path.write_text(
        f"""
paths:
  root: "{temp_dir / 'archive'}"
sources:
  - type: soundcloud
    url: "{SOURCE_URL}"
  - type: youtube
    url: "https://www.youtube.com/playlist?list=PL1"
    inactive: true
schedule:
  cron: "0 4 * * *"
  timezone: "UTC"
retry:
  max_retries: 0
""",
        encoding="utf-8",
    )
    return path


class TestStatusCommand:
    """Test `status`"""

    def test_unfetched_sources(self, config_file):
        """Test sources without index entries are listed as not fetched"""
        result = CliRunner().invoke(cli, ["--config", str(config_file), "status"])

        assert result.exit_code == 0
        assert SOURCE_URL in result.output
        assert "not fetched yet" in result.output
        assert "[inactive]" in result.output

    def test_counts_from_index(self, config_file, temp_dir):
        """Test counts are read from the saved index"""
        index = ArchiveIndex()
        index.apply(SOURCE_URL, make_playlist("a", "b"), deleted=[], removed=[], restricted=[])
        (temp_dir / "archive").mkdir()
        index.save(temp_dir / "archive" / "index.json")

        result = CliRunner().invoke(cli, ["--config", str(config_file), "status"])

        assert result.exit_code == 0
        assert "Favorites (pl1)" in result.output
        assert "entries:     2" in result.output

    def test_missing_config(self, temp_dir):
        """Test a missing config file exits with 1"""
        result = CliRunner().invoke(cli, ["--config", str(temp_dir / "none.yaml"), "status"])

        assert result.exit_code == 1

    def test_corrupt_index(self, config_file, temp_dir):
        """Test an unreadable index exits with 2"""
        (temp_dir / "archive").mkdir()
        (temp_dir / "archive" / "index.json").write_text("{", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(config_file), "status"])

        assert result.exit_code == 2


class TestNextRunCommand:
    """Test `next-run`"""

    def test_prints_next_wake(self, config_file):
        """Test the next wake time is printed with its schedule"""
        result = CliRunner().invoke(cli, ["--config", str(config_file), "next-run"])

        assert result.exit_code == 0
        assert "04:00:00+00:00" in result.output
        assert "0 4 * * *" in result.output


class TestRefreshCommand:
    """Test `refresh` exit codes"""

    def test_transport_error_exits_3(self, config_file):
        """Test a fetch failure maps to exit code 3"""
        with patch(
            "playlist_archiver.sync.scheduler.refresh",
            side_effect=TransportError("offline"),
        ):
            result = CliRunner().invoke(cli, ["--config", str(config_file), "refresh"])

        assert result.exit_code == 3
        assert "offline" in result.output

    def test_success(self, config_file):
        """Test a successful refresh exits with 0"""
        with patch("playlist_archiver.sync.scheduler.refresh", return_value=[]) as mock_refresh:
            result = CliRunner().invoke(cli, ["--config", str(config_file), "refresh"])

        assert result.exit_code == 0
        mock_refresh.assert_called_once()
