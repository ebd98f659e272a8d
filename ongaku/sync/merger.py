"""
Applies finished downloads to the in-memory library.

merge_results() is the single consumer of the executor's results. It
runs on the calling thread, so the Library is only ever mutated from
one thread and needs no locking.
"""

from collections.abc import Iterable

from ongaku.core.logger import get_logger
from ongaku.library.models import DownloadResult, Library, Track

logger = get_logger(__name__)


def merge_results(library: Library, results: Iterable[DownloadResult]) -> int:
    """
    Append a Track to its entry for every download result.

    Results are applied in arrival order. A result whose entry is no
    longer in the library is ignored, and so is a URL the entry already
    has, so each download appears in the library at most once.

    Args:
        library: Library to update in place.
        results: Download results, typically DownloadExecutor.execute().

    Returns:
        Number of tracks added.
    """
    # Recorded URLs per entry id, built on first use
    known_urls: dict[str, set[str]] = {}
    applied = 0

    for result in results:
        task = result.task
        entry = library.entries.get(task.entry_id)
        if entry is None:
            logger.debug(f"Dropping result for unknown entry {task.entry_id}: {task.track_url}")
            continue

        urls = known_urls.get(entry.id)
        if urls is None:
            urls = known_urls[entry.id] = entry.track_urls()

        if task.track_url in urls:
            logger.debug(f"{entry.name} already has {task.track_url}")
            continue

        entry.tracks.append(Track(url=task.track_url, file=result.file))
        urls.add(task.track_url)
        applied += 1

    return applied
