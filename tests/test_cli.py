# tests/test_cli.py
"""Test the command-line interface"""

import pytest
from pathlib import Path
from unittest.mock import Mock, patch

from click.testing import CliRunner

from ongaku import __version__
from ongaku.cli import cli
from ongaku.core.exceptions import ResolverError
from ongaku.library.models import EntryType
from ongaku.library.store import LibraryStore
from ongaku.sync import sync_library as real_sync_library

from conftest import FakeResolver, make_entry


ARTIST_INPUT = "https://music.youtube.com/channel/UCartist"
PLAYLIST_INPUT = "https://music.youtube.com/playlist?list=PLmix"
ARTIST_URL = "https://www.youtube.com/channel/UCartist"
PLAYLIST_URL = "https://www.youtube.com/playlist?list=PLmix"


@pytest.fixture
def runner():
    """CliRunner inside an isolated working directory"""
    cli_runner = CliRunner()
    with cli_runner.isolated_filesystem():
        yield cli_runner


@pytest.fixture
def resolver(runner):
    """FakeResolver used by every command"""
    fake = FakeResolver(
        Path.cwd(),
        entries={
            ARTIST_INPUT: make_entry("UCartist", EntryType.ARTIST, "Test Artist", ARTIST_URL),
            PLAYLIST_INPUT: make_entry("PLmix", EntryType.PLAYLIST, "Test Mix", PLAYLIST_URL),
        },
    )
    with patch("ongaku.cli._make_resolver", return_value=fake):
        yield fake


def _library():
    return LibraryStore(Path(".ongaku.db")).load()


class TestVersionAndHelp:
    """Test the top level group"""

    def test_version(self):
        """Test --version"""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"ongaku {__version__}"

    def test_help_without_command(self):
        """Test the help is shown without a command"""
        result = CliRunner().invoke(cli, [])

        assert result.exit_code == 0
        assert "sync" in result.output


class TestInit:
    """Test `ongaku init`"""

    def test_init(self, runner):
        """Test init creates the library"""
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert "Successfully initialized ongaku." in result.output
        assert Path(".ongaku.db").exists()
        assert _library().entries == {}

    def test_init_twice(self, runner):
        """Test a second init fails"""
        runner.invoke(cli, ["init"])

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 2
        assert "ongaku has already been initialized in this directory." in result.output

    def test_init_uses_config(self, runner):
        """Test the library location comes from ongaku.yaml"""
        Path("ongaku.yaml").write_text("library:\n  file: music.db\n")

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert Path("music.db").exists()
        assert not Path(".ongaku.db").exists()

    def test_invalid_config(self, runner):
        """Test configuration errors exit with 1"""
        Path("ongaku.yaml").write_text("download:\n  threads: zero\n")

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert not Path(".ongaku.db").exists()


class TestAdd:
    """Test `ongaku add`"""

    def test_add_artist(self, runner, resolver):
        """Test an artist is added"""
        runner.invoke(cli, ["init"])

        result = runner.invoke(cli, ["add", ARTIST_INPUT])

        assert result.exit_code == 0
        assert "Successfully added Test Artist to your library." in result.output
        entry = _library().entries["ARTIST/UCartist"]
        assert entry.url == ARTIST_URL
        assert entry.tracks == []

    def test_add_with_name(self, runner, resolver):
        """Test --name overrides the resolved name"""
        runner.invoke(cli, ["init"])

        result = runner.invoke(cli, ["add", PLAYLIST_INPUT, "--name", "Road Trip"])

        assert result.exit_code == 0
        assert _library().entries["PLAYLIST/PLmix"].name == "Road Trip"

    def test_add_duplicate(self, runner, resolver):
        """Test an entry cannot be added twice"""
        runner.invoke(cli, ["init"])
        runner.invoke(cli, ["add", ARTIST_INPUT])

        result = runner.invoke(cli, ["add", ARTIST_INPUT])

        assert result.exit_code == 3
        assert "Test Artist is already in library" in result.output
        assert len(_library().entries) == 1

    def test_add_unsupported_url(self, runner, resolver):
        """Test unsupported URLs are rejected"""
        runner.invoke(cli, ["init"])

        result = runner.invoke(cli, ["add", "https://www.youtube.com/watch?v=abc"])

        assert result.exit_code == 3
        assert "Unsupported url type: https://www.youtube.com/watch?v=abc" in result.output

    def test_add_resolver_failure(self, runner):
        """Test lookup failures exit with 4 and change nothing"""
        runner.invoke(cli, ["init"])
        failing = Mock()
        failing.resolve_entry.side_effect = ResolverError("yt-dlp error: channel unavailable")

        with patch("ongaku.cli._make_resolver", return_value=failing):
            result = runner.invoke(cli, ["add", ARTIST_INPUT])

        assert result.exit_code == 4
        assert "channel unavailable" in result.output
        assert _library().entries == {}

    def test_add_before_init(self, runner, resolver):
        """Test add needs a library"""
        result = runner.invoke(cli, ["add", ARTIST_INPUT])

        assert result.exit_code == 2
        assert "ongaku has not yet been initialized in this directory." in result.output


class TestSync:
    """Test `ongaku sync`"""

    def test_sync(self, runner, resolver):
        """Test a sync downloads the missing tracks"""
        runner.invoke(cli, ["init"])
        runner.invoke(cli, ["add", ARTIST_INPUT])
        resolver.listings = {ARTIST_URL: ["https://www.youtube.com/watch?v=t1"]}

        result = runner.invoke(cli, ["sync", "--no-progress", "--threads", "2"])

        assert result.exit_code == 0
        assert "Successfully synced library." in result.output
        assert _library().entries["ARTIST/UCartist"].track_urls() == {"https://www.youtube.com/watch?v=t1"}

    def test_sync_verify_reports_missing_files(self, runner, resolver):
        """Test sync --verify tells how many recorded files are gone"""
        runner.invoke(cli, ["init"])
        runner.invoke(cli, ["add", PLAYLIST_INPUT])
        resolver.listings = {PLAYLIST_URL: ["https://www.youtube.com/watch?v=p1"]}
        runner.invoke(cli, ["sync", "--no-progress"])
        _library().entries["PLAYLIST/PLmix"].tracks[0].file.unlink()

        result = runner.invoke(cli, ["sync", "--verify", "--no-progress"])

        assert result.exit_code == 0
        assert "1 recorded tracks are missing on disk." in result.output
        assert "Successfully synced library." in result.output

    def test_sync_with_failures_exits_zero(self, runner, resolver):
        """Test recoverable failures are reported without failing the command"""
        runner.invoke(cli, ["init"])
        runner.invoke(cli, ["add", ARTIST_INPUT])
        runner.invoke(cli, ["add", PLAYLIST_INPUT])
        resolver.listings = {
            ARTIST_URL: ResolverError("yt-dlp error: channel unavailable"),
            PLAYLIST_URL: ["https://www.youtube.com/watch?v=p1", "https://www.youtube.com/watch?v=p2"],
        }
        resolver.download_failures = {"https://www.youtube.com/watch?v=p2"}

        result = runner.invoke(cli, ["sync", "--no-progress"])

        assert result.exit_code == 0
        assert "Synced with 2 warnings" in result.output
        assert _library().entries["PLAYLIST/PLmix"].track_urls() == {"https://www.youtube.com/watch?v=p1"}

    def test_sync_threads_from_config(self, runner, resolver):
        """Test the configured thread count is used"""
        Path("ongaku.yaml").write_text("download:\n  threads: 3\n")
        runner.invoke(cli, ["init"])

        with patch("ongaku.cli.sync_library", wraps=real_sync_library) as sync_library:
            result = runner.invoke(cli, ["sync", "--no-progress"])

        assert result.exit_code == 0
        assert sync_library.call_args.kwargs["num_workers"] == 3

    def test_sync_invalid_threads(self, runner, resolver):
        """Test --threads must be positive"""
        result = runner.invoke(cli, ["sync", "--threads", "0"])

        assert result.exit_code == 2
        assert not Path(".ongaku.db").exists()

    def test_sync_before_init(self, runner, resolver):
        """Test sync needs a library"""
        result = runner.invoke(cli, ["sync", "--no-progress"])

        assert result.exit_code == 2
        assert resolver.listed == []


class TestVerify:
    """Test `ongaku verify`"""

    def test_verify_reports_missing(self, runner, resolver):
        """Test missing files are reported with exit code 0"""
        runner.invoke(cli, ["init"])
        runner.invoke(cli, ["add", PLAYLIST_INPUT])
        resolver.listings = {PLAYLIST_URL: ["https://www.youtube.com/watch?v=p1"]}
        runner.invoke(cli, ["sync", "--no-progress"])

        result = runner.invoke(cli, ["verify"])
        assert result.exit_code == 0
        assert "All 1 tracks are present." in result.output

        _library().entries["PLAYLIST/PLmix"].tracks[0].file.unlink()
        result = runner.invoke(cli, ["verify"])

        assert result.exit_code == 0
        assert "1 of 1 tracks are missing." in result.output
