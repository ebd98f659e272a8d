"""
Sync orchestration.

A sync runs three phases on the calling thread, with only the downloads
fanned out to the worker pool:

    [1/3] Load the library                  LibraryStore.load()
    [2/3] List missing tracks               build_tasks()
    [3/3] Download missing tracks           DownloadExecutor + merge_results()
          then save once                    LibraryStore.save()

Library store errors (missing, corrupt or unwritable library file) are
fatal and propagate to the caller. Listing and download failures are
recoverable: they end up in SyncReport.warnings and the sync carries on.
"""

from ongaku.core.logger import get_logger
from ongaku.core.progress import DownloadProgressBar, ListingProgressBar, NullProgress
from ongaku.library.store import LibraryStore
from ongaku.sync.diff import build_tasks
from ongaku.sync.executor import DownloadExecutor
from ongaku.sync.merger import merge_results
from ongaku.sync.report import SyncReport
from ongaku.sync.verify import verify_library
from ongaku.youtube.resolver import Resolver

logger = get_logger(__name__)


def sync_library(
    store: LibraryStore,
    resolver: Resolver,
    num_workers: int | None = None,
    verify: bool = False,
    show_progress: bool = True
) -> SyncReport:
    """
    Download every remote track missing from the library.

    Args:
        store: Library file to load and save.
        resolver: Lists entries and downloads tracks.
        num_workers: Download pool size, None for one worker per CPU.
        verify: Check that recorded files still exist before syncing.
        show_progress: Display Rich progress bars.

    Returns:
        SyncReport with counts and every recoverable failure.

    Raises:
        LibraryError: If the library cannot be loaded or saved. Tracks
                      downloaded during this run are then not recorded.
    """
    listing_bar = ListingProgressBar if show_progress else NullProgress
    download_bar = DownloadProgressBar if show_progress else NullProgress

    logger.info("[1/3] Loading library")
    library = store.load()
    report = SyncReport(entries=len(library.entries))

    if verify:
        report.missing_files = len(verify_library(library).missing)

    logger.info("[2/3] Listing missing tracks")
    with listing_bar(total=len(library.entries)) as progress:
        diff = build_tasks(library, resolver, progress=progress)
    report.tasks = len(diff.tasks)
    report.entries_failed = len(diff.failures)
    report.warnings.extend(diff.failures)

    logger.info("[3/3] Downloading missing tracks")
    executor = DownloadExecutor(resolver, num_workers=num_workers)
    with download_bar(total=len(diff.tasks)) as progress:
        report.downloaded = merge_results(
            library,
            executor.execute(
                diff.tasks,
                on_task_done=lambda task, success: progress.update(success=success)
            )
        )
    report.failed = len(executor.failures)
    report.warnings.extend(executor.failures)

    store.save(library)

    logger.info(
        f"Synced {report.entries - report.entries_failed}/{report.entries} entries: "
        f"{report.downloaded} downloaded, {report.failed} failed"
    )
    return report
