"""
Synchronization engine for ongaku.

This package brings the local mirror up to date with the remote entries:
    - diff: remote listing minus recorded tracks -> download tasks
    - executor: bounded thread pool running the downloads
    - merger: single consumer applying downloads to the library
    - engine: load -> diff -> download/merge -> save
    - verify: report recorded files missing from disk

Usage:
    from ongaku.sync import sync_library

    report = sync_library(LibraryStore(path), YtDlpResolver(output_dir))
    print(f"Downloaded: {report.downloaded}/{report.tasks}")
"""

from ongaku.sync.diff import DiffResult, build_tasks, diff_entry
from ongaku.sync.engine import sync_library
from ongaku.sync.executor import DownloadExecutor
from ongaku.sync.merger import merge_results
from ongaku.sync.report import SyncReport, SyncWarning, WarningKind
from ongaku.sync.verify import MissingTrack, VerifyReport, verify_library

__all__ = [
    "DiffResult",
    "build_tasks",
    "diff_entry",
    "sync_library",
    "DownloadExecutor",
    "merge_results",
    "SyncReport",
    "SyncWarning",
    "WarningKind",
    "MissingTrack",
    "VerifyReport",
    "verify_library",
]
