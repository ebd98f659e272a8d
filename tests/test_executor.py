# tests/test_executor.py
"""Test the download thread pool"""

import threading
import time
from unittest.mock import patch

import pytest

from ongaku.library.models import EntryType, Task
from ongaku.sync.executor import DownloadExecutor
from ongaku.sync.report import WarningKind

from conftest import FakeResolver


def _tasks(count, prefix="t"):
    return [
        Task(
            entry_id="PLAYLIST/PL1",
            entry_type=EntryType.PLAYLIST,
            entry_name="Mix",
            track_url=f"https://www.youtube.com/watch?v={prefix}{index}",
        )
        for index in range(count)
    ]


class TestDownloadExecutor:
    """Test DownloadExecutor"""

    def test_one_result_per_success(self, fake_resolver):
        """Test every task is downloaded and yielded once"""
        tasks = _tasks(20)
        executor = DownloadExecutor(fake_resolver, num_workers=4)

        results = list(executor.execute(tasks))

        assert sorted(result.task.track_url for result in results) == sorted(
            task.track_url for task in tasks
        )
        assert all(result.file.exists() for result in results)
        assert executor.failures == []

    def test_failures_are_isolated(self, temp_dir):
        """Test failed downloads are reported and do not stop the others"""
        tasks = _tasks(6)
        resolver = FakeResolver(
            temp_dir,
            download_failures={tasks[1].track_url, tasks[4].track_url}
        )
        executor = DownloadExecutor(resolver, num_workers=3)

        results = list(executor.execute(tasks))

        assert {result.task for result in results} == {tasks[0], tasks[2], tasks[3], tasks[5]}
        assert sorted(resolver.downloaded) == sorted(task.track_url for task in tasks)
        assert {failure.url for failure in executor.failures} == {tasks[1].track_url, tasks[4].track_url}
        assert all(failure.kind is WarningKind.TRACK for failure in executor.failures)
        assert all(failure.entry_name == "Mix" for failure in executor.failures)

    def test_all_tasks_fail(self, temp_dir):
        """Test the consumer terminates when nothing succeeds"""
        tasks = _tasks(5)
        resolver = FakeResolver(temp_dir, download_failures={task.track_url for task in tasks})
        executor = DownloadExecutor(resolver, num_workers=2)

        assert list(executor.execute(tasks)) == []
        assert len(executor.failures) == 5

    def test_unexpected_exception(self, temp_dir):
        """Test a non resolver exception becomes a failure"""
        class BrokenResolver(FakeResolver):
            def download(self, track_url, entry_type, entry_name):
                raise OSError("disk full")

        executor = DownloadExecutor(BrokenResolver(temp_dir), num_workers=1)

        assert list(executor.execute(_tasks(1))) == []
        assert executor.failures[0].reason == "Unexpected error: disk full"

    def test_empty_task_list(self, fake_resolver):
        """Test no tasks terminates without starting a pool"""
        executor = DownloadExecutor(fake_resolver, num_workers=4)

        with patch("ongaku.sync.executor.ThreadPoolExecutor") as pool:
            assert list(executor.execute([])) == []

        pool.assert_not_called()
        assert fake_resolver.downloaded == []

    def test_on_task_done(self, temp_dir):
        """Test the callback runs once per task with its outcome"""
        tasks = _tasks(4)
        resolver = FakeResolver(temp_dir, download_failures={tasks[0].track_url})
        outcomes = {}
        lock = threading.Lock()

        def on_task_done(task, success):
            with lock:
                outcomes[task.track_url] = success

        list(DownloadExecutor(resolver, num_workers=2).execute(tasks, on_task_done=on_task_done))

        assert outcomes == {
            tasks[0].track_url: False,
            tasks[1].track_url: True,
            tasks[2].track_url: True,
            tasks[3].track_url: True,
        }

    def test_failures_reset_between_runs(self, temp_dir):
        """Test failures only describe the last run"""
        tasks = _tasks(2)
        resolver = FakeResolver(temp_dir, download_failures={tasks[0].track_url})
        executor = DownloadExecutor(resolver, num_workers=1)
        list(executor.execute(tasks))

        resolver.download_failures.clear()
        list(executor.execute(tasks))

        assert executor.failures == []

    def test_default_worker_count(self, fake_resolver):
        """Test the pool defaults to the available parallelism"""
        with patch("ongaku.utils.available_parallelism", return_value=6):
            assert DownloadExecutor(fake_resolver).num_workers == 6

    def test_worker_count_at_least_one(self, fake_resolver):
        """Test the pool never has fewer than one worker"""
        assert DownloadExecutor(fake_resolver, num_workers=0).num_workers == 1

        with patch("ongaku.utils.os.cpu_count", return_value=None), \
                patch("ongaku.utils.os.sched_getaffinity", side_effect=AttributeError, create=True):
            assert DownloadExecutor(fake_resolver).num_workers == 1

    def test_interrupt_cancels_queued_downloads(self, temp_dir):
        """Test an interrupted consumer does not wait for every queued download"""
        class SlowResolver(FakeResolver):
            def download(self, track_url, entry_type, entry_name):
                time.sleep(0.05)
                return super().download(track_url, entry_type, entry_name)

        resolver = SlowResolver(temp_dir)
        results = DownloadExecutor(resolver, num_workers=1).execute(_tasks(20))
        next(results)

        with pytest.raises(KeyboardInterrupt):
            results.throw(KeyboardInterrupt())

        assert len(resolver.downloaded) < 5

    def test_closing_results_cancels_queued_downloads(self, temp_dir):
        """Test abandoning the results stops the remaining downloads"""
        class SlowResolver(FakeResolver):
            def download(self, track_url, entry_type, entry_name):
                time.sleep(0.05)
                return super().download(track_url, entry_type, entry_name)

        resolver = SlowResolver(temp_dir)
        results = DownloadExecutor(resolver, num_workers=1).execute(_tasks(20))
        next(results)
        results.close()

        assert len(resolver.downloaded) < 5

    def test_concurrency_bounded_by_workers(self, temp_dir):
        """Test no more downloads run at once than there are workers"""
        class CountingResolver(FakeResolver):
            running = 0
            peak = 0

            def download(self, track_url, entry_type, entry_name):
                with self._lock:
                    self.running += 1
                    self.peak = max(self.peak, self.running)
                try:
                    time.sleep(0.02)
                    return super().download(track_url, entry_type, entry_name)
                finally:
                    with self._lock:
                        self.running -= 1

        resolver = CountingResolver(temp_dir)

        results = list(DownloadExecutor(resolver, num_workers=3).execute(_tasks(12)))

        assert len(results) == 12
        assert 1 <= resolver.peak <= 3
