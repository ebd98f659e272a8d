"""
ongaku: Keep a local mirror of YouTube Music artists and playlists.

This package keeps a library of tracked remote collections (artists and
playlists) and downloads, on each sync, only the tracks that are not yet
in the library.

Architecture:
    A sync is split into three phases:

    PHASE 1 (library/): Load the library file
        - Versioned SQLite file, .ongaku.db by default
        - Entries and their downloaded tracks

    PHASE 2 (sync/diff.py): List missing tracks
        - List every entry on YouTube with yt-dlp
        - Keep the track URLs the entry does not have yet
        - An entry that fails to list is skipped and reported

    PHASE 3 (sync/executor.py, sync/merger.py): Download
        - Download the missing tracks on a thread pool
        - Append each finished download to its entry
        - Save the library once at the end

Modules:
    core/       - Configuration, logging, progress bars, exceptions
    library/    - Data model and library file
    youtube/    - yt-dlp resolver (listing, downloading, URL parsing)
    sync/       - Diff, download pool, merge, verify
    utils/      - Utility functions
    cli.py      - Command-line interface

Usage:
    Command Line:
        ongaku init
        ongaku add "https://music.youtube.com/channel/..."
        ongaku sync

    Python API:
        from ongaku.library import LibraryStore
        from ongaku.sync import sync_library
        from ongaku.youtube import YtDlpResolver

        store = LibraryStore(Path(".ongaku.db"))
        report = sync_library(store, YtDlpResolver(Path(".")), num_workers=4)

Dependencies:
    - yt-dlp: YouTube extraction and download
    - click: CLI framework
    - rich-click: CLI colors
    - rich: Progress bars
    - tqdm: Log output that does not break progress bars
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "ongaku"
__license__ = "MIT"

# Convenience imports for common usage
from ongaku.core import (
    Config,
    ConfigError,
    LibraryError,
    OngakuError,
    ResolverError,
    ValidationError,
    get_logger,
    load_config,
    setup_logging,
)
from ongaku.library import Entry, EntryType, Library, LibraryStore, Track

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "OngakuError",
    "ConfigError",
    "LibraryError",
    "ResolverError",
    "ValidationError",
    # Models
    "Entry",
    "EntryType",
    "Library",
    "LibraryStore",
    "Track",
]
