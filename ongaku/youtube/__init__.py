"""
YouTube access for ongaku.

Usage:
    from ongaku.youtube import YtDlpResolver

    resolver = YtDlpResolver(output_dir=Path("~/Music").expanduser())
    entry = resolver.resolve_entry("https://music.youtube.com/channel/UCxxxx")
    urls = resolver.list_tracks(entry.url)
"""

from ongaku.youtube.resolver import (
    Resolver,
    YtDlpResolver,
    classify_url,
    entry_directory,
)

__all__ = [
    "Resolver",
    "YtDlpResolver",
    "classify_url",
    "entry_directory",
]
