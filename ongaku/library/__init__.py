"""
Library data model and storage for ongaku.

Usage:
    from ongaku.library import Entry, EntryType, Library, LibraryStore, Track
"""

from ongaku.library.models import (
    DownloadResult,
    Entry,
    EntryType,
    Library,
    Task,
    Track,
    generate_entry_id,
)
from ongaku.library.store import LIBRARY_VERSION, LibraryStore

__all__ = [
    "LIBRARY_VERSION",
    "LibraryStore",
    "DownloadResult",
    "Entry",
    "EntryType",
    "Library",
    "Task",
    "Track",
    "generate_entry_id",
]
