"""
Exception classes for ongaku.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, and its class tells the caller how severe the failure is.

Exception Hierarchy:
    OngakuError (base)
        ConfigError - Configuration file issues (fatal)
        LibraryError - Library file issues (fatal)
            AlreadyInitializedError - init() on an existing library
            NotInitializedError - load()/save() without a library
            LibraryDecodeError - Corrupt or incompatible library file
                LibraryVersionError - Schema version mismatch
            LibraryWriteError - Library file could not be written
        ResolverError - yt-dlp listing/download issues (recoverable in sync)
        ValidationError - User errors, surfaced directly
            UnsupportedUrlError - URL kind not handled by the resolver
            AlreadyInLibraryError - Entry already tracked
"""


class OngakuError(Exception):
    """
    Base exception for all ongaku errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all ongaku errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., entry id, URLs).

    Example:
        try:
            store.load()
        except OngakuError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'path': Library or config file involved in the error
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(OngakuError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - ongaku.yaml has invalid YAML syntax
        - A section is not a dictionary
        - Invalid field values (e.g., zero thread count, missing cookie file)

    Example:
        raise ConfigError(
            "'download.threads' must be a positive integer",
            details={'field': 'download.threads', 'value': 0}
        )
    """
    pass


class LibraryError(OngakuError):
    """
    Raised when there's an issue with the library file.

    This is a CRITICAL error that should stop program execution.
    The library file holds every tracked entry and every downloaded track,
    so if it cannot be read or written we cannot tell what is synced.
    Partial in-memory progress of a sync is lost when this is raised.
    """
    pass


class AlreadyInitializedError(LibraryError):
    """
    Raised by init() when a library file already exists.

    init() never overwrites an existing library.
    """

    def __init__(self, message: str | None = None, details: dict | None = None) -> None:
        super().__init__(
            message or "ongaku has already been initialized in this directory.",
            details,
        )


class NotInitializedError(LibraryError):
    """Raised when the library file is missing (run `ongaku init` first)."""

    def __init__(self, message: str | None = None, details: dict | None = None) -> None:
        super().__init__(
            message or "ongaku has not yet been initialized in this directory.",
            details,
        )


class LibraryDecodeError(LibraryError):
    """
    Raised when the library file exists but cannot be decoded.

    Common causes:
        - File is not an SQLite database (truncated, overwritten)
        - Required tables are missing
        - An entry carries an unknown type tag
    """
    pass


class LibraryVersionError(LibraryDecodeError):
    """
    Raised when the stored schema version differs from the expected one.

    Attributes:
        expected: Schema version the store was built for.
        actual: Schema version found in the file.
    """

    def __init__(self, expected: int, actual: int | None) -> None:
        super().__init__(
            f"Library version mismatch: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class LibraryWriteError(LibraryError):
    """
    Raised when the library snapshot cannot be written.

    Common causes:
        - Permission denied
        - Disk full
        - File locked by another process
    """
    pass


class ResolverError(OngakuError):
    """
    Raised when yt-dlp fails to list an entry or download a track.

    This is a NON-CRITICAL error during sync - the failing entry or track
    is reported as a warning and the rest of the sync continues. During
    `ongaku add` it is fatal to the command.

    Common causes:
        - Channel or playlist removed or private
        - Video unavailable or region-locked
        - Network connectivity issues
        - FFmpeg conversion failed

    Example:
        raise ResolverError(
            "yt-dlp error: Video unavailable",
            details={'url': 'https://www.youtube.com/watch?v=xxx'}
        )
    """
    pass


class ValidationError(OngakuError):
    """
    Raised for user errors that retrying will not fix.

    These are shown to the user as-is and never retried.
    """
    pass


class UnsupportedUrlError(ValidationError):
    """Raised when a URL is not a supported artist or playlist URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Unsupported url type: {url}", details={"url": url})
        self.url = url


class AlreadyInLibraryError(ValidationError):
    """Raised when adding an entry whose id is already in the library."""

    def __init__(self, entry_name: str, entry_id: str | None = None) -> None:
        super().__init__(
            f"{entry_name} is already in library",
            details={"entry_id": entry_id} if entry_id else None,
        )
        self.entry_name = entry_name
