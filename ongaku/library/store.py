"""
Library file storage for ongaku.

The whole library is persisted as a snapshot in a single SQLite file.
The store never updates rows incrementally: load() decodes the complete
snapshot into a Library, and save() re-encodes the complete Library in
one transaction, replacing whatever the file held before.

Schema:
    schema_version:     Single row holding the schema version
    entries:            One row per Entry (id, type tag, name, urls)
    tracks:             One row per Track, ordered by position within its entry

Lifecycle:
    store = LibraryStore(Path(".ongaku.db"))

    store.init()                 # once, fails if the file exists
    library = store.load()       # fails if missing, corrupt or wrong version
    ...mutate library...
    store.save(library)          # atomic snapshot replacement
"""

import sqlite3
import threading
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Generator

from ongaku.core.exceptions import (
    AlreadyInitializedError,
    LibraryDecodeError,
    LibraryVersionError,
    LibraryWriteError,
    NotInitializedError,
)
from ongaku.core.logger import get_logger
from ongaku.library.models import Entry, EntryType, Library, Track

logger = get_logger(__name__)


LIBRARY_VERSION = 1


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS entries (
    id TEXT PRIMARY KEY NOT NULL,
    type TEXT NOT NULL,
    name TEXT NOT NULL,
    original_url TEXT NOT NULL,
    url TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tracks (
    entry_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    url TEXT NOT NULL,
    file TEXT NOT NULL,
    PRIMARY KEY (entry_id, position),
    UNIQUE (entry_id, url),
    FOREIGN KEY (entry_id) REFERENCES entries(id) ON DELETE CASCADE
);
"""


class LibraryStore:
    """
    Loads and saves the library snapshot.

    The file path and schema version are passed in explicitly so tests
    can point a store at a temporary directory.

    Attributes:
        path: Location of the library file.
        version: Schema version this store reads and writes.
    """

    def __init__(self, path: Path, version: int = LIBRARY_VERSION) -> None:
        self.path = path
        self.version = version
        self._lock = threading.Lock()

    @contextmanager
    def _get_connection(self, mode: str) -> Generator[sqlite3.Connection, None, None]:
        """
        Open a connection to the existing library file.

        Args:
            mode: SQLite URI mode, "ro" or "rw". Neither mode creates
                  the file, so a missing library is never recreated here.
        """
        uri = f"{self.path.resolve().as_uri()}?mode={mode}"
        with closing(sqlite3.connect(uri, uri=True, timeout=30.0)) as conn:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn

    def exists(self) -> bool:
        return self.path.exists()

    def init(self) -> Library:
        """
        Create a new, empty library file.

        Returns:
            The empty Library that was written.

        Raises:
            AlreadyInitializedError: If a file already exists at self.path.
                                     The existing file is left untouched.
            LibraryWriteError: If the file cannot be created or written.
        """
        with self._lock:
            logger.debug(f"Creating library file {self.path}")
            try:
                # Exclusive creation: fails instead of truncating an existing file
                with open(self.path, "xb"):
                    pass
            except FileExistsError as e:
                raise AlreadyInitializedError(details={"path": str(self.path)}) from e
            except OSError as e:
                raise LibraryWriteError(
                    f"Failed to create library file: {e}",
                    details={"path": str(self.path), "original_error": str(e)}
                ) from e

            library = Library.empty(self.version)
            try:
                with self._get_connection("rw") as conn:
                    conn.executescript(_SCHEMA_SQL)
                    conn.execute("INSERT INTO schema_version (version) VALUES (?)", (self.version,))
                    conn.commit()
            except sqlite3.Error as e:
                self.path.unlink(missing_ok=True)
                raise LibraryWriteError(
                    f"Failed to initialize library file: {e}",
                    details={"path": str(self.path), "original_error": str(e)}
                ) from e

            logger.debug(f"Library initialized (version {self.version})")
            return library

    def load(self) -> Library:
        """
        Read and decode the library file.

        Raises:
            NotInitializedError: If the library file does not exist.
            LibraryVersionError: If the stored schema version differs.
            LibraryDecodeError: If the file is not a valid library.
        """
        with self._lock:
            if not self.path.exists():
                raise NotInitializedError(details={"path": str(self.path)})

            logger.debug(f"Loading library from {self.path}")
            try:
                with self._get_connection("ro") as conn:
                    self._check_version(conn)
                    library = self._decode(conn)
            except sqlite3.Error as e:
                raise LibraryDecodeError(
                    f"Failed to decode library: {e}",
                    details={"path": str(self.path), "original_error": str(e)}
                ) from e

            logger.debug(
                f"Loaded {len(library.entries)} entries, {library.track_count()} tracks"
            )
            return library

    def save(self, library: Library) -> None:
        """
        Replace the stored snapshot with the given library.

        All rows are deleted and re-inserted in one transaction, so a
        failure leaves the previous snapshot in place.

        Raises:
            NotInitializedError: If the library file no longer exists.
            LibraryWriteError: If the library cannot be written, or its
                               version differs from the store's.
        """
        with self._lock:
            if not self.path.exists():
                raise NotInitializedError(details={"path": str(self.path)})

            if library.version != self.version:
                raise LibraryWriteError(
                    f"Cannot save library version {library.version} "
                    f"into a version {self.version} library file",
                    details={"path": str(self.path)}
                )

            logger.debug(f"Saving library to {self.path}")
            try:
                with self._get_connection("rw") as conn:
                    # Commits on success, rolls back on exception
                    with conn:
                        self._encode(conn, library)
            except sqlite3.Error as e:
                raise LibraryWriteError(
                    f"Failed to write library: {e}",
                    details={"path": str(self.path), "original_error": str(e)}
                ) from e

    def _check_version(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
        actual = row[0] if row else None
        if actual != self.version:
            raise LibraryVersionError(expected=self.version, actual=actual)

    def _decode(self, conn: sqlite3.Connection) -> Library:
        library = Library.empty(self.version)

        for entry_id, type_tag, name, original_url, url in conn.execute(
            "SELECT id, type, name, original_url, url FROM entries ORDER BY rowid"
        ):
            try:
                entry_type = EntryType.from_tag(type_tag)
            except ValueError as e:
                raise LibraryDecodeError(
                    f"Failed to decode library: {e}",
                    details={"path": str(self.path), "entry_id": entry_id}
                ) from e
            library.entries[entry_id] = Entry(
                id=entry_id,
                type=entry_type,
                name=name,
                original_url=original_url,
                url=url,
            )

        for entry_id, url, file in conn.execute(
            "SELECT entry_id, url, file FROM tracks ORDER BY entry_id, position"
        ):
            entry = library.entries.get(entry_id)
            if entry is None:
                raise LibraryDecodeError(
                    f"Failed to decode library: track references unknown entry {entry_id}",
                    details={"path": str(self.path), "entry_id": entry_id}
                )
            entry.tracks.append(Track(url=url, file=Path(file)))

        return library

    def _encode(self, conn: sqlite3.Connection, library: Library) -> None:
        conn.execute("DELETE FROM tracks")
        conn.execute("DELETE FROM entries")
        conn.execute("UPDATE schema_version SET version = ?", (library.version,))

        conn.executemany(
            "INSERT INTO entries (id, type, name, original_url, url) VALUES (?, ?, ?, ?, ?)",
            [
                (key, entry.type.name, entry.name, entry.original_url, entry.url)
                for key, entry in library.entries.items()
            ]
        )
        conn.executemany(
            "INSERT INTO tracks (entry_id, position, url, file) VALUES (?, ?, ?, ?)",
            [
                (key, position, track.url, str(track.file))
                for key, entry in library.entries.items()
                for position, track in enumerate(entry.tracks)
            ]
        )
