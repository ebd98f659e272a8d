"""
Core module for ongaku.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs
    - progress: Rich progress bars for the sync phases

Usage:
    from ongaku.core import (
        Config, load_config,
        setup_logging, get_logger,
        OngakuError, ConfigError, LibraryError
    )
"""

from ongaku.core.config import (
    Config,
    DownloadConfig,
    LibraryConfig,
    OutputConfig,
    load_config,
)
from ongaku.core.exceptions import (
    AlreadyInitializedError,
    AlreadyInLibraryError,
    ConfigError,
    LibraryDecodeError,
    LibraryError,
    LibraryVersionError,
    LibraryWriteError,
    NotInitializedError,
    OngakuError,
    ResolverError,
    UnsupportedUrlError,
    ValidationError,
)
from ongaku.core.logger import (
    get_logger,
    log_download_failure,
    log_entry_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "LibraryConfig",
    "OutputConfig",
    "DownloadConfig",
    "load_config",
    # Exceptions
    "OngakuError",
    "ConfigError",
    "LibraryError",
    "AlreadyInitializedError",
    "NotInitializedError",
    "LibraryDecodeError",
    "LibraryVersionError",
    "LibraryWriteError",
    "ResolverError",
    "ValidationError",
    "UnsupportedUrlError",
    "AlreadyInLibraryError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_entry_failure",
    "log_download_failure",
    "shutdown_logging",
]
