"""
Data models for the ongaku library.

This module defines the dataclasses that make up the persisted library
(Library, Entry, Track) and the transient units of work used by a sync
run (Task, DownloadResult).

Design Decisions:
    - Track, Task and DownloadResult are frozen (immutable)
    - Entry and Library are mutable: a sync appends tracks in place
    - EntryType is a closed Enum; its member name is the id type tag
    - Models are independent of the library file format

Usage:
    from ongaku.library.models import Entry, EntryType, Library, Track

    library = Library.empty(version=1)
    entry = Entry(
        id=generate_entry_id("UCxxxx", EntryType.ARTIST),
        type=EntryType.ARTIST,
        name="Artist Name",
        original_url="https://music.youtube.com/channel/UCxxxx",
        url="https://www.youtube.com/channel/UCxxxx",
    )
    library.add_entry(entry)
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ongaku.core.exceptions import AlreadyInLibraryError


class EntryType(Enum):
    """
    Kind of remote collection an Entry tracks.

    The member name is used as the type tag of entry ids ("ARTIST/...")
    and as the value stored in the library file.
    """

    ARTIST = "ARTIST"
    PLAYLIST = "PLAYLIST"

    @classmethod
    def from_tag(cls, tag: str) -> "EntryType":
        """
        Parse a stored type tag.

        Raises:
            ValueError: If the tag is not a known entry type.
        """
        try:
            return cls[tag]
        except KeyError:
            raise ValueError(f"Unknown entry type: {tag!r}") from None


def generate_entry_id(remote_id: str, entry_type: EntryType) -> str:
    """
    Build the library-wide identifier of an entry.

    Args:
        remote_id: Channel or playlist id reported by the remote source.
        entry_type: Kind of entry.

    Returns:
        "<TYPE>/<remote_id>", e.g. "ARTIST/UCzIVTMt4MpC3JNfcQtSAfCA".
    """
    return f"{entry_type.name}/{remote_id}"


@dataclass(frozen=True)
class Track:
    """
    A single downloaded item.

    Attributes:
        url: Remote track URL. This is the diffing key: a remote URL that
             matches a Track's url is considered already synced.
        file: Local path of the downloaded file, as returned by the resolver.
    """

    url: str
    file: Path


@dataclass
class Entry:
    """
    A tracked remote collection (artist or playlist).

    Attributes:
        id: Stable library id, see generate_entry_id().
        type: Kind of collection.
        name: Display name, also used to name the output directory.
        original_url: The URL the user supplied to `ongaku add`.
        url: Canonical URL used to list tracks during sync.
        tracks: Downloaded tracks in download completion order.
                No two tracks share a url.
    """

    id: str
    type: EntryType
    name: str
    original_url: str
    url: str
    tracks: list[Track] = field(default_factory=list)

    def track_urls(self) -> set[str]:
        """Return the set of remote URLs already downloaded for this entry."""
        return {track.url for track in self.tracks}

    def has_track(self, url: str) -> bool:
        return any(track.url == url for track in self.tracks)

    def add_track(self, track: Track) -> bool:
        """
        Append a track unless its URL is already present.

        Returns:
            True if the track was appended, False if it was a duplicate.
        """
        if self.has_track(track.url):
            return False
        self.tracks.append(track)
        return True


@dataclass
class Library:
    """
    Root aggregate persisted in the library file.

    Attributes:
        version: Schema version of the library file.
        entries: Entries keyed by Entry.id. Keys always equal the id of
                 the entry they map to.
    """

    version: int
    entries: dict[str, Entry] = field(default_factory=dict)

    @classmethod
    def empty(cls, version: int) -> "Library":
        return cls(version=version, entries={})

    def add_entry(self, entry: Entry) -> None:
        """
        Insert a new entry.

        Raises:
            AlreadyInLibraryError: If an entry with the same id exists.
        """
        if entry.id in self.entries:
            raise AlreadyInLibraryError(entry.name, entry.id)
        self.entries[entry.id] = entry

    def track_count(self) -> int:
        return sum(len(entry.tracks) for entry in self.entries.values())


@dataclass(frozen=True)
class Task:
    """
    One pending download, created by the diff step of a sync run.

    Attributes:
        entry_id: Id of the entry the track belongs to.
        entry_type: Type of that entry (shapes the output directory).
        entry_name: Name of that entry (names the output directory).
        track_url: Remote URL of the track to download.
    """

    entry_id: str
    entry_type: EntryType
    entry_name: str
    track_url: str


@dataclass(frozen=True)
class DownloadResult:
    """A successfully downloaded Task and the file it produced."""

    task: Task
    file: Path
