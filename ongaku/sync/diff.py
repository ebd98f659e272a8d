"""
Missing track detection for a sync run.

For every entry, the remote track listing is compared with the tracks
already recorded in the library. Each remote URL that is not recorded
yet becomes one download Task.

A failure to list one entry is logged, recorded as a warning and the
entry is skipped. It never affects the other entries.
"""

from dataclasses import dataclass, field

from ongaku.core.logger import get_logger, log_entry_failure
from ongaku.library.models import Entry, Library, Task
from ongaku.sync.report import SyncWarning, WarningKind
from ongaku.youtube.resolver import Resolver

logger = get_logger(__name__)


@dataclass
class DiffResult:
    """
    Output of build_tasks().

    Attributes:
        tasks: Download tasks across all entries.
        failures: One ENTRY warning per entry that could not be listed.
    """
    tasks: list[Task] = field(default_factory=list)
    failures: list[SyncWarning] = field(default_factory=list)


def diff_entry(entry: Entry, remote_urls: list[str]) -> list[Task]:
    """
    Return the tasks for the remote URLs an entry does not have yet.

    A URL listed more than once remotely yields a single task.

    Args:
        entry: Entry from the library.
        remote_urls: Current remote listing of the entry, in remote order.
    """
    known = entry.track_urls()
    tasks = []
    for track_url in remote_urls:
        if track_url in known:
            continue
        known.add(track_url)
        tasks.append(
            Task(
                entry_id=entry.id,
                entry_type=entry.type,
                entry_name=entry.name,
                track_url=track_url,
            )
        )
    return tasks


def build_tasks(library: Library, resolver: Resolver, progress=None) -> DiffResult:
    """
    List every entry and collect the tracks missing locally.

    Args:
        library: Loaded library. Not modified.
        resolver: Source of remote track listings.
        progress: Optional progress bar, updated once per entry.

    Returns:
        DiffResult with the flat task list and the entries that failed.
    """
    result = DiffResult()

    for entry in library.entries.values():
        try:
            remote_urls = resolver.list_tracks(entry.url)
        except Exception as e:
            # Entry-scoped: report it and move on to the next entry
            log_entry_failure(logger, entry.name, entry.url, str(e))
            result.failures.append(
                SyncWarning(
                    kind=WarningKind.ENTRY,
                    entry_name=entry.name,
                    url=entry.url,
                    reason=str(e),
                )
            )
            if progress is not None:
                progress.update(success=False)
            continue

        tasks = diff_entry(entry, remote_urls)
        logger.debug(
            f"{entry.name}: {len(remote_urls)} remote, {len(tasks)} missing"
        )
        result.tasks.extend(tasks)
        if progress is not None:
            progress.update(success=True)

    logger.info(
        f"Found {len(result.tasks)} missing tracks in "
        f"{len(library.entries) - len(result.failures)} entries"
    )
    return result
