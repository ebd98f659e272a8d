"""
YouTube resolver for ongaku.

This module is the only place that talks to YouTube. It wraps the yt-dlp
Python API behind the small Resolver interface the sync engine depends on:

    list_tracks(remote_url)                          -> list of track URLs
    download(track_url, entry_type, entry_name)      -> path of the local file
    resolve_entry(user_url)                          -> new Entry (add-time only)

The sync engine only ever sees the Resolver protocol, so tests run it
against a fake without touching the network.

Supported URLs:
    - YouTube Music channels: https://music.youtube.com/channel/<channel id>
      -> EntryType.ARTIST
    - Playlists: https://www.youtube.com/playlist?list=<playlist id>
      (also music.youtube.com and youtube.com)
      -> EntryType.PLAYLIST

Output Layout:
    output_directory/
    ├── Artists/
    │   └── Artist Name/
    │       └── Song Title [dQw4w9WgXcQ].m4a
    └── Playlists/
        └── Playlist Name/
            └── Song Title [yyyyyyyyyyy].m4a

Dependencies:
    - yt-dlp: YouTube extraction and download
    - FFmpeg: Audio extraction (must be installed)
"""

from pathlib import Path
from typing import Any, Protocol
from urllib.parse import parse_qs, urlparse

from yt_dlp import YoutubeDL

from ongaku.core.exceptions import ResolverError, UnsupportedUrlError
from ongaku.core.logger import get_logger
from ongaku.library.models import Entry, EntryType, generate_entry_id
from ongaku.utils import ensure_directory, sanitize_filename

logger = get_logger(__name__)


YOUTUBE_HOSTS = ("www.youtube.com", "youtube.com", "m.youtube.com", "music.youtube.com")
YTMUSIC_CHANNEL_PREFIX = "https://music.youtube.com/channel/"
TOPIC_SUFFIX = " - Topic"

# Channel tabs and nested playlists are followed at most this deep
MAX_LISTING_DEPTH = 2

AUDIO_EXTENSIONS = (".m4a", ".mp3", ".opus", ".flac", ".webm", ".ogg", ".mp4")


class Resolver(Protocol):
    """Capability the sync engine needs from the remote source."""

    def list_tracks(self, remote_url: str) -> list[str]:
        """Return the ordered track URLs of a collection. Raises ResolverError."""
        ...

    def download(self, track_url: str, entry_type: EntryType, entry_name: str) -> Path:
        """Download one track and return its local path. Raises ResolverError."""
        ...

    def resolve_entry(self, user_url: str) -> Entry:
        """Build a new, trackless Entry for a user supplied URL."""
        ...


class YtDlpSilentLogger:
    """
    Logger handed to yt-dlp so it never prints to the terminal directly.

    yt-dlp ignores quiet=True for certain errors and prints directly to stderr.
    This logger routes its messages to our DEBUG log and keeps the last
    error so it can be attached to the ResolverError.
    """

    def __init__(self) -> None:
        self.last_error: str | None = None

    def debug(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def info(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp warning: {msg}")

    def error(self, msg: str) -> None:
        self.last_error = msg
        logger.debug(f"yt-dlp error: {msg}")


def classify_url(url: str) -> EntryType:
    """
    Decide which kind of entry a user supplied URL describes.

    Args:
        url: URL passed to `ongaku add`.

    Returns:
        EntryType for the URL.

    Raises:
        UnsupportedUrlError: If the URL is neither a YouTube Music channel
                             nor a playlist URL.
    """
    if url.startswith(YTMUSIC_CHANNEL_PREFIX) and len(url) > len(YTMUSIC_CHANNEL_PREFIX):
        return EntryType.ARTIST

    parsed = urlparse(url)
    if (
        parsed.scheme in ("http", "https")
        and parsed.netloc in YOUTUBE_HOSTS
        and parsed.path.rstrip("/") == "/playlist"
        and parse_qs(parsed.query).get("list")
    ):
        return EntryType.PLAYLIST

    raise UnsupportedUrlError(url)


def extract_playlist_id(url: str) -> str | None:
    """Return the list= parameter of a playlist URL, or None."""
    values = parse_qs(urlparse(url).query).get("list")
    return values[0] if values else None


def entry_directory(output_dir: Path, entry_type: EntryType, entry_name: str) -> Path:
    """
    Directory where tracks of an entry are written.

    Args:
        output_dir: Base output directory.
        entry_type: Kind of entry, selects the top level folder.
        entry_name: Entry display name, sanitized into a folder name.
    """
    if entry_type is EntryType.ARTIST:
        group = "Artists"
    elif entry_type is EntryType.PLAYLIST:
        group = "Playlists"
    else:
        raise ValueError(f"No directory convention for entry type {entry_type!r}")
    return output_dir / group / sanitize_filename(entry_name)


def _track_url(item: dict[str, Any]) -> str | None:
    """URL of a flat playlist item, building a watch URL from its id if needed."""
    url = item.get("url") or item.get("webpage_url")
    if url and url.startswith("http"):
        return url
    video_id = item.get("id")
    if video_id:
        return f"https://www.youtube.com/watch?v={video_id}"
    return None


def _is_collection(item: dict[str, Any]) -> bool:
    """True for flat items that are themselves playlists or channel tabs."""
    return (
        item.get("_type") == "playlist"
        or "entries" in item
        or item.get("ie_key") == "YoutubeTab"
    )


class YtDlpResolver:
    """
    Resolver backed by the yt-dlp Python API.

    Attributes:
        _output_dir: Base directory for Artists/ and Playlists/.
        _cookie_file: Optional cookies.txt passed to yt-dlp.
        _audio_format: Codec extracted with FFmpeg, "best" keeps the source.

    Thread Safety:
        Every call builds its own YoutubeDL instance, so download() may be
        called from many worker threads at once.
    """

    def __init__(
        self,
        output_dir: Path,
        cookie_file: Path | None = None,
        audio_format: str = "m4a"
    ) -> None:
        self._output_dir = output_dir
        self._cookie_file = cookie_file
        self._audio_format = audio_format

        if self._cookie_file is not None and not self._cookie_file.exists():
            logger.warning(f"Cookie file not found: {self._cookie_file}. Ignoring it.")
            self._cookie_file = None

    def resolve_entry(self, user_url: str) -> Entry:
        """
        Build a new Entry for a user supplied URL.

        Raises:
            UnsupportedUrlError: If the URL kind is not supported.
            ResolverError: If yt-dlp fails or returns no usable metadata.
        """
        entry_type = classify_url(user_url)
        logger.debug(f"Fetching {entry_type.name.lower()} data for {user_url}")
        info = self._extract(user_url, flat=True)

        if entry_type is EntryType.ARTIST:
            return self._artist_entry(user_url, info)
        if entry_type is EntryType.PLAYLIST:
            return self._playlist_entry(user_url, info)
        raise UnsupportedUrlError(user_url)

    def list_tracks(self, remote_url: str) -> list[str]:
        """
        List the track URLs of a channel or playlist, in remote order.

        Raises:
            ResolverError: If yt-dlp fails to list the collection.
        """
        info = self._extract(remote_url, flat=True)
        track_urls: list[str] = []
        self._collect_tracks(info, track_urls, depth=0)
        logger.debug(f"Listed {len(track_urls)} tracks for {remote_url}")
        return track_urls

    def download(self, track_url: str, entry_type: EntryType, entry_name: str) -> Path:
        """
        Download one track into its entry directory.

        Args:
            track_url: Remote URL of the track.
            entry_type: Kind of entry, shapes the output directory.
            entry_name: Entry name, names the output directory.

        Returns:
            Path of the final audio file.

        Raises:
            ResolverError: If the download or the audio extraction fails.
        """
        directory = ensure_directory(entry_directory(self._output_dir, entry_type, entry_name))
        output_template = str(directory / "%(title)s [%(id)s].%(ext)s")

        info = self._extract(track_url, flat=False, output_template=output_template)
        return self._find_downloaded_file(info, directory)

    def _artist_entry(self, user_url: str, info: dict[str, Any]) -> Entry:
        # Channel fields are on the playlist itself or, as with
        # `--flat-playlist`, on its first item
        first = next(iter(info.get("entries") or []), None) or {}
        channel_id = info.get("channel_id") or first.get("channel_id")
        channel = info.get("channel") or first.get("channel") or info.get("uploader")
        channel_url = info.get("channel_url") or first.get("channel_url")

        if not channel_id or not channel:
            raise ResolverError("yt-dlp error: no channel data.", details={"url": user_url})

        return Entry(
            id=generate_entry_id(channel_id, EntryType.ARTIST),
            type=EntryType.ARTIST,
            name=channel.removesuffix(TOPIC_SUFFIX),
            original_url=user_url,
            url=channel_url or f"https://www.youtube.com/channel/{channel_id}",
        )

    def _playlist_entry(self, user_url: str, info: dict[str, Any]) -> Entry:
        playlist_id = info.get("id") or extract_playlist_id(user_url)
        title = info.get("title")

        if not playlist_id or not title:
            raise ResolverError("yt-dlp error: no playlist data.", details={"url": user_url})

        return Entry(
            id=generate_entry_id(playlist_id, EntryType.PLAYLIST),
            type=EntryType.PLAYLIST,
            name=title,
            original_url=user_url,
            url=f"https://www.youtube.com/playlist?list={playlist_id}",
        )

    def _collect_tracks(self, info: dict[str, Any], track_urls: list[str], depth: int) -> None:
        for item in info.get("entries") or []:
            if not item:
                continue
            if _is_collection(item):
                if depth >= MAX_LISTING_DEPTH:
                    continue
                nested = item
                if "entries" not in item:
                    nested_url = item.get("url")
                    if not nested_url:
                        continue
                    nested = self._extract(nested_url, flat=True)
                self._collect_tracks(nested, track_urls, depth + 1)
                continue

            url = _track_url(item)
            if url:
                track_urls.append(url)

    def _extract(
        self,
        url: str,
        flat: bool,
        output_template: str | None = None
    ) -> dict[str, Any]:
        """
        Run yt-dlp on one URL.

        Raises:
            ResolverError: With yt-dlp's message when extraction fails.
        """
        yt_logger = YtDlpSilentLogger()
        options = self._get_yt_dlp_options(yt_logger, flat, output_template)

        try:
            with YoutubeDL(options) as ydl:
                info = ydl.extract_info(url, download=not flat)
        except Exception as e:
            error_msg = str(e)
            if yt_logger.last_error and yt_logger.last_error not in error_msg:
                error_msg = f"{error_msg} | {yt_logger.last_error}"
            raise ResolverError(f"yt-dlp error: {error_msg}", details={"url": url}) from e

        if not info:
            raise ResolverError("yt-dlp error: no output.", details={"url": url})
        return info

    def _get_yt_dlp_options(
        self,
        yt_logger: YtDlpSilentLogger,
        flat: bool,
        output_template: str | None = None
    ) -> dict[str, Any]:
        """
        Build the yt-dlp options dictionary.

        Args:
            yt_logger: Logger receiving yt-dlp output.
            flat: List only (no per-video extraction, no download).
            output_template: Output path template for downloads.
        """
        options: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "logger": yt_logger,
            "encoding": "UTF-8",
            # yt-dlp internal retries for requests and fragments
            "retries": 3,
            "fragment_retries": 3,
        }

        if flat:
            options["extract_flat"] = "in_playlist"
            options["skip_download"] = True
        else:
            options["format"] = "bestaudio/best"
            options["noplaylist"] = True
            options["keepvideo"] = False
            if output_template is not None:
                options["outtmpl"] = output_template
            if self._audio_format != "best":
                options["postprocessors"] = [
                    {
                        "key": "FFmpegExtractAudio",
                        "preferredcodec": self._audio_format,
                        "preferredquality": "0",
                    }
                ]

        if self._cookie_file is not None:
            options["cookiefile"] = str(self._cookie_file)

        return options

    def _find_downloaded_file(self, info: dict[str, Any], directory: Path) -> Path:
        """
        Locate the final file of a finished download.

        Raises:
            ResolverError: If no audio file is found.
        """
        # yt-dlp records the post-processed path here
        for download in info.get("requested_downloads") or []:
            filepath = download.get("filepath")
            if filepath and Path(filepath).exists():
                return Path(filepath)

        video_id = info.get("id")
        if video_id:
            for candidate in sorted(directory.glob(f"*[[]{video_id}[]].*")):
                if candidate.suffix in AUDIO_EXTENSIONS:
                    return candidate

        raise ResolverError(
            f"Downloaded file not found in {directory}",
            details={"url": info.get("webpage_url"), "directory": str(directory)}
        )
