"""Test configuration and fixtures"""

import pytest
import tempfile
import threading
from pathlib import Path

from ongaku.core.exceptions import ResolverError, UnsupportedUrlError
from ongaku.library.models import Entry, EntryType, Library, Track, generate_entry_id
from ongaku.library.store import LibraryStore


ARTIST_URL = "https://www.youtube.com/channel/UCartist"
PLAYLIST_URL = "https://www.youtube.com/playlist?list=PLmix"


class FakeResolver:
    """
    In-memory Resolver.

    listings maps an entry URL to its track URLs, or to an exception that
    list_tracks() raises. Downloads write an empty file under output_dir
    unless the track URL is in download_failures.
    """

    def __init__(self, output_dir, listings=None, download_failures=None, entries=None):
        self.output_dir = Path(output_dir)
        self.listings = listings or {}
        self.download_failures = set(download_failures or ())
        self.entries = entries or {}
        self.listed = []
        self.downloaded = []
        self._lock = threading.Lock()

    def list_tracks(self, remote_url):
        self.listed.append(remote_url)
        listing = self.listings.get(remote_url, [])
        if isinstance(listing, Exception):
            raise listing
        return list(listing)

    def download(self, track_url, entry_type, entry_name):
        with self._lock:
            self.downloaded.append(track_url)
        if track_url in self.download_failures:
            raise ResolverError(f"yt-dlp error: could not download {track_url}")
        directory = self.output_dir / entry_name
        directory.mkdir(parents=True, exist_ok=True)
        file = directory / f"{track_url.rsplit('=', 1)[-1]}.m4a"
        file.touch()
        return file

    def resolve_entry(self, user_url):
        if user_url not in self.entries:
            raise UnsupportedUrlError(user_url)
        entry = self.entries[user_url]
        return Entry(
            id=entry.id,
            type=entry.type,
            name=entry.name,
            original_url=entry.original_url,
            url=entry.url,
        )


def make_entry(remote_id, entry_type, name, url, tracks=()):
    return Entry(
        id=generate_entry_id(remote_id, entry_type),
        type=entry_type,
        name=name,
        original_url=url,
        url=url,
        tracks=list(tracks),
    )


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def store(temp_dir):
    """Initialized library store in a temporary directory"""
    library_store = LibraryStore(temp_dir / ".ongaku.db")
    library_store.init()
    return library_store


@pytest.fixture
def artist_entry():
    """Artist entry with one downloaded track"""
    return make_entry(
        "UCartist",
        EntryType.ARTIST,
        "Test Artist",
        ARTIST_URL,
        tracks=[Track(url="https://www.youtube.com/watch?v=t1", file=Path("Artists/Test Artist/t1.m4a"))],
    )


@pytest.fixture
def playlist_entry():
    """Playlist entry without tracks"""
    return make_entry("PLmix", EntryType.PLAYLIST, "Test Mix", PLAYLIST_URL)


@pytest.fixture
def sample_library(artist_entry, playlist_entry):
    """Library with an artist and a playlist"""
    library = Library.empty(version=1)
    library.add_entry(artist_entry)
    library.add_entry(playlist_entry)
    return library


@pytest.fixture
def fake_resolver(temp_dir):
    """FakeResolver writing into temp_dir/downloads"""
    return FakeResolver(temp_dir / "downloads")
