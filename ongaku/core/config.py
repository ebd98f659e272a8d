"""
Configuration management for ongaku.

This module handles loading, validating, and providing access to the
application configuration stored in ongaku.yaml.

The configuration file is optional. When it is absent every setting
takes its default value, so a bare `ongaku init` in an empty directory
works without any setup.

The configuration file contains:
    - Library file location
    - Output directory for downloaded tracks and for log files
    - Number of parallel download threads
    - Optional cookie file path for yt-dlp
    - Audio format for extracted tracks

Configuration File Location:
    The ongaku.yaml file is looked up in the current working directory
    when running the application.

Example ongaku.yaml:
    library:
      file: ".ongaku.db"

    output:
      directory: "~/Music/ongaku"
      logs_directory: "~/Music/ongaku/.logs"

    download:
      threads: 4            # null = one thread per CPU
      cookie_file: null     # Optional: path to cookies.txt
      audio_format: "m4a"
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ongaku.core.exceptions import ConfigError


# Default configuration file name (always in current working directory)
CONFIG_FILENAME = "ongaku.yaml"

# Defaults, relative paths are resolved against the working directory
DEFAULT_LIBRARY_FILE = ".ongaku.db"
DEFAULT_OUTPUT_DIRECTORY = "."
DEFAULT_LOGS_DIRECTORY = ".ongaku-logs"
DEFAULT_AUDIO_FORMAT = "m4a"

SUPPORTED_AUDIO_FORMATS = ("m4a", "mp3", "opus", "flac", "best")


@dataclass(frozen=True)
class LibraryConfig:
    """
    Library file configuration.

    Attributes:
        file: Absolute path of the library file.
    """
    file: Path


@dataclass(frozen=True)
class OutputConfig:
    """
    Output directory configuration.

    Attributes:
        directory: Absolute path under which Artists/ and Playlists/ are written.
        logs_directory: Absolute path where per-run log files are written.
    """
    directory: Path
    logs_directory: Path


@dataclass(frozen=True)
class DownloadConfig:
    """
    Download behavior configuration.

    Attributes:
        threads: Number of parallel download threads, or None to use one
                 thread per available CPU.
        cookie_file: Optional path to a cookies.txt file passed to yt-dlp.
        audio_format: Codec extracted by yt-dlp ("best" keeps the source codec).
    """
    threads: int | None
    cookie_file: Path | None
    audio_format: str


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Attributes:
        library: Library file settings.
        output: Output directory settings.
        download: Download behavior settings.
    """
    library: LibraryConfig
    output: OutputConfig
    download: DownloadConfig


def load_config(config_path: Path | None = None, base_dir: Path | None = None) -> Config:
    """
    Load and validate configuration from ongaku.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for ongaku.yaml in base_dir.
        base_dir: Directory relative paths are resolved against.
                  Defaults to the current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is missing, the file has
                     invalid YAML syntax, or contains invalid values.

    Behavior:
        1. Locate config file (explicit path or base_dir/ongaku.yaml)
        2. If the default file does not exist, use defaults
        3. Read and parse YAML content
        4. Validate and extract each section, applying defaults
        5. Create and return frozen Config object
    """
    base_dir = base_dir or Path.cwd()
    explicit = config_path is not None
    if config_path is None:
        config_path = base_dir / CONFIG_FILENAME

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        raw_config: dict[str, Any] = {}
    else:
        raw_config = _read_config_file(config_path)

    return Config(
        library=_parse_library_config(_get_section(raw_config, "library"), base_dir),
        output=_parse_output_config(_get_section(raw_config, "output"), base_dir),
        download=_parse_download_config(_get_section(raw_config, "download"), base_dir),
    )


def _read_config_file(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file parses to None
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )
    return raw_config


def _get_section(raw_config: dict[str, Any], section: str) -> dict[str, Any]:
    """
    Return a section of the raw config, or an empty dict if absent.

    Raises:
        ConfigError: If the section is present but not a dictionary.
    """
    value = raw_config.get(section)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"Section '{section}' must be a dictionary",
            details={"section": section}
        )
    return value


def _parse_path(raw: Any, field: str, default: str, base_dir: Path) -> Path:
    """Validate a path field, expand ~ and resolve it against base_dir."""
    if raw is None:
        raw = default
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigError(
            f"'{field}' must be a non-empty string",
            details={"field": field}
        )
    path = Path(raw.strip()).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()


def _parse_library_config(section: dict[str, Any], base_dir: Path) -> LibraryConfig:
    return LibraryConfig(
        file=_parse_path(section.get("file"), "library.file", DEFAULT_LIBRARY_FILE, base_dir)
    )


def _parse_output_config(section: dict[str, Any], base_dir: Path) -> OutputConfig:
    directory = _parse_path(
        section.get("directory"), "output.directory", DEFAULT_OUTPUT_DIRECTORY, base_dir
    )
    logs_directory = _parse_path(
        section.get("logs_directory"), "output.logs_directory", DEFAULT_LOGS_DIRECTORY, base_dir
    )
    return OutputConfig(directory=directory, logs_directory=logs_directory)


def _parse_download_config(section: dict[str, Any], base_dir: Path) -> DownloadConfig:
    """
    Parse and validate the download configuration section.

    Raises:
        ConfigError: If threads is not a positive integer, cookie_file
                     doesn't exist, or audio_format is not supported.
    """
    threads = section.get("threads")
    # bool is an int subclass, reject it explicitly
    if threads is not None and (
        isinstance(threads, bool) or not isinstance(threads, int) or threads < 1
    ):
        raise ConfigError(
            "'download.threads' must be a positive integer or null",
            details={"field": "download.threads", "value": threads}
        )

    cookie_file = None
    raw_cookie = section.get("cookie_file")
    if raw_cookie is not None:
        if not isinstance(raw_cookie, str):
            raise ConfigError(
                "'download.cookie_file' must be a string path or null",
                details={"field": "download.cookie_file"}
            )
        cookie_file = _parse_path(raw_cookie, "download.cookie_file", "", base_dir)
        if not cookie_file.exists():
            raise ConfigError(
                f"Cookie file not found: {cookie_file}",
                details={"field": "download.cookie_file", "path": str(cookie_file)}
            )

    audio_format = section.get("audio_format", DEFAULT_AUDIO_FORMAT)
    if audio_format not in SUPPORTED_AUDIO_FORMATS:
        raise ConfigError(
            f"'download.audio_format' must be one of: {', '.join(SUPPORTED_AUDIO_FORMATS)}",
            details={"field": "download.audio_format", "value": audio_format}
        )

    return DownloadConfig(
        threads=threads,
        cookie_file=cookie_file,
        audio_format=audio_format,
    )
