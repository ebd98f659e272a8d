"""
Utility functions for ongaku.

This module provides common utility functions used across the application:
    - Filename sanitization (using yt-dlp's sanitize_filename)
    - Worker pool sizing
    - Path manipulation helpers

Usage:
    from ongaku.utils import (
        sanitize_filename,
        resolve_worker_count,
        ensure_directory
    )
"""

import os
from pathlib import Path

from yt_dlp.utils import sanitize_filename as yt_dlp_sanitize


def sanitize_filename(name: str, restricted: bool = False) -> str:
    """
    Sanitize a string for use as a file or directory name.

    Uses yt-dlp's sanitize_filename function for consistency with
    how yt-dlp names downloaded files.

    Args:
        name: The string to sanitize (e.g., artist or playlist name).
        restricted: If True, use more aggressive sanitization that
                   removes all special characters. Default False.

    Returns:
        Sanitized string safe for use in paths, "Unknown" if nothing is left.
        Path separators never survive, so the result is a single path component.
    """
    sanitized = yt_dlp_sanitize(name, restricted=restricted).strip()
    return sanitized or "Unknown"


def available_parallelism() -> int:
    """Return the number of CPUs available to this process, at least 1."""
    try:
        count = len(os.sched_getaffinity(0))
    except (AttributeError, OSError):
        # sched_getaffinity is not available on macOS and Windows
        count = os.cpu_count() or 1
    return max(1, count)


def resolve_worker_count(requested: int | None = None) -> int:
    """
    Decide the size of the download pool.

    Args:
        requested: Configured thread count, or None for one per CPU.

    Returns:
        A positive worker count. Non-positive requests fall back to 1.
    """
    if requested is None:
        return available_parallelism()
    return max(1, requested)


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Path to the directory.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If directory cannot be created (permissions, etc.)
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
