"""
Parallel track downloads for a sync run.

Architecture:
    build_tasks() ──► [Task, Task, ...]
                          │
                          ▼
            ThreadPoolExecutor (N workers)       N = configured threads,
            ┌──────────┬──────────┬─────┐          or one per CPU, never < 1
            │ worker 1 │ worker 2 │ ... │
            └────┬─────┴────┬─────┴─────┘
                 │ success  │ success              failures are logged and
                 ▼          ▼                      recorded, never queued
              results queue (many producers)
                 │
                 ▼
            consumer (calling thread) ──► merge_results()

Completion:
    Every submitted future decrements an outstanding-task counter from its
    done-callback. The callback that brings the counter to zero puts a
    sentinel on the queue. A worker queues its result before its future
    completes, so the sentinel is always the last item and the consumer
    loop ends exactly once every task has finished.

Interruption:
    If the consumer stops early (KeyboardInterrupt, an exception while
    merging, or the generator being closed), queued downloads are
    cancelled. Only the downloads already running are waited for.

Usage:
    executor = DownloadExecutor(resolver, num_workers=4)
    for result in executor.execute(tasks):
        ...
    print(executor.failures)
"""

import queue
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor

from ongaku.core.logger import get_logger, log_download_failure
from ongaku.core.exceptions import ResolverError
from ongaku.library.models import DownloadResult, Task
from ongaku.sync.report import SyncWarning, WarningKind
from ongaku.utils import resolve_worker_count
from ongaku.youtube.resolver import Resolver

logger = get_logger(__name__)


# Put on the results queue once the last task has finished
_ALL_TASKS_DONE = object()


class DownloadExecutor:
    """
    Runs download tasks on a bounded thread pool.

    Attributes:
        num_workers: Size of the thread pool (at least 1).
        failures: TRACK warnings recorded by the last execute() call.

    Thread Safety:
        Workers only call the resolver and put results on the queue.
        They never touch the Library. The failure list and the
        outstanding-task counter are guarded by _lock.
    """

    def __init__(self, resolver: Resolver, num_workers: int | None = None) -> None:
        """
        Initialize the executor.

        Args:
            resolver: Performs the actual downloads. Must be safe to call
                      from several threads at once.
            num_workers: Pool size, or None for one worker per CPU.
        """
        self._resolver = resolver
        self.num_workers = resolve_worker_count(num_workers)
        self.failures: list[SyncWarning] = []
        self._lock = threading.Lock()

    def execute(
        self,
        tasks: list[Task],
        on_task_done: Callable[[Task, bool], None] | None = None
    ) -> Iterator[DownloadResult]:
        """
        Download all tasks and yield the successful ones as they finish.

        Every task is dispatched. Results arrive in completion order, not
        in task order. Failed tasks are logged, recorded in self.failures
        and not yielded.

        Args:
            tasks: Tasks to download.
            on_task_done: Optional callback invoked from the worker thread
                          once per task with (task, success).

        Yields:
            One DownloadResult per successful task.
        """
        self.failures = []
        if not tasks:
            logger.info("No tracks to download")
            return

        logger.info(f"Starting download of {len(tasks)} tracks with {self.num_workers} threads")

        results: queue.Queue = queue.Queue()
        outstanding = len(tasks)

        def task_finished(_future: Future) -> None:
            nonlocal outstanding
            with self._lock:
                outstanding -= 1
                last = outstanding == 0
            if last:
                results.put(_ALL_TASKS_DONE)

        with ThreadPoolExecutor(
            max_workers=self.num_workers,
            thread_name_prefix="ongaku-download"
        ) as pool:
            for task in tasks:
                future = pool.submit(self._run_task, task, results, on_task_done)
                future.add_done_callback(task_finished)

            try:
                while True:
                    item = results.get()
                    if item is _ALL_TASKS_DONE:
                        break
                    yield item
            except BaseException:
                # Interrupted or abandoned consumer: drop queued downloads,
                # only the ones already running are waited for
                logger.info("Cancelling pending downloads")
                pool.shutdown(wait=False, cancel_futures=True)
                raise

        logger.info(
            f"Download complete: {len(tasks) - len(self.failures)}/{len(tasks)} successful, "
            f"{len(self.failures)} failed"
        )

    def _run_task(
        self,
        task: Task,
        results: queue.Queue,
        on_task_done: Callable[[Task, bool], None] | None
    ) -> None:
        """
        Download one task on a worker thread.

        Never raises: a failure is logged and recorded so it cannot
        affect the other tasks.
        """
        success = False
        try:
            file = self._resolver.download(task.track_url, task.entry_type, task.entry_name)
            results.put(DownloadResult(task=task, file=file))
            success = True
            logger.debug(f"Downloaded: {task.track_url} -> {file}")
        except ResolverError as e:
            self._record_failure(task, str(e))
        except Exception as e:
            self._record_failure(task, f"Unexpected error: {e}")
        finally:
            if on_task_done is not None:
                on_task_done(task, success)

    def _record_failure(self, task: Task, reason: str) -> None:
        log_download_failure(logger, task.entry_name, task.track_url, reason)
        with self._lock:
            self.failures.append(
                SyncWarning(
                    kind=WarningKind.TRACK,
                    entry_name=task.entry_name,
                    url=task.track_url,
                    reason=reason,
                )
            )
