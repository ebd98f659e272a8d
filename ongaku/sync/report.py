"""
Result types of a sync run.

Recoverable failures never raise out of the sync engine. They are
collected as SyncWarning values and returned in the SyncReport, so the
caller can show a summary and decide on an exit code.
"""

from dataclasses import dataclass, field
from enum import Enum


class WarningKind(Enum):
    """Scope of a recoverable failure."""
    ENTRY = "entry"   # Listing the tracks of an entry failed
    TRACK = "track"   # Downloading a single track failed


@dataclass(frozen=True)
class SyncWarning:
    """
    One recoverable failure.

    Attributes:
        kind: Whether a whole entry or a single track was skipped.
        entry_name: Name of the entry involved.
        url: Entry URL (ENTRY) or track URL (TRACK).
        reason: Underlying cause, as reported by the resolver.
    """
    kind: WarningKind
    entry_name: str
    url: str
    reason: str

    def __str__(self) -> str:
        if self.kind is WarningKind.ENTRY:
            return f"Failed to fetch tracks for {self.entry_name} ({self.url}): {self.reason}"
        return f"Failed to download track at {self.url} ({self.entry_name}): {self.reason}"


@dataclass
class SyncReport:
    """
    Statistics from a sync run.

    Attributes:
        entries: Entries in the library.
        entries_failed: Entries whose listing failed (not updated this run).
        tasks: Missing tracks scheduled for download.
        downloaded: Tracks downloaded and added to the library.
        failed: Tracks whose download failed.
        missing_files: Recorded tracks whose file is missing, None unless
                       the sync verified the library first.
        warnings: Every recoverable failure, entries first.
    """

    entries: int = 0
    entries_failed: int = 0
    tasks: int = 0
    downloaded: int = 0
    failed: int = 0
    missing_files: int | None = None
    warnings: list[SyncWarning] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Downloaded tracks as a percentage of scheduled tracks."""
        if self.tasks == 0:
            return 0.0
        return (self.downloaded / self.tasks) * 100

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
