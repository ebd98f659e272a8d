"""
Library integrity check.

Reports tracks whose downloaded file is no longer on disk. Reporting
only: the library is never modified, and a missing file is not
downloaded again by sync (its URL is still recorded).
"""

from dataclasses import dataclass, field
from pathlib import Path

from ongaku.core.logger import get_logger
from ongaku.library.models import Library

logger = get_logger(__name__)


@dataclass(frozen=True)
class MissingTrack:
    """A recorded track whose file does not exist."""
    entry_id: str
    entry_name: str
    track_url: str
    file: Path


@dataclass
class VerifyReport:
    """
    Result of verify_library().

    Attributes:
        checked: Number of tracks checked.
        missing: Tracks whose file is missing.
    """
    checked: int = 0
    missing: list[MissingTrack] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


def verify_library(library: Library) -> VerifyReport:
    """
    Check that the file of every track exists.

    Each missing file is logged as a warning.
    """
    report = VerifyReport()

    for entry in library.entries.values():
        for track in entry.tracks:
            report.checked += 1
            if track.file.exists():
                continue
            logger.warning(f"Missing file for {entry.name}: {track.file} ({track.url})")
            report.missing.append(
                MissingTrack(
                    entry_id=entry.id,
                    entry_name=entry.name,
                    track_url=track.url,
                    file=track.file,
                )
            )

    logger.info(f"Verified {report.checked} tracks, {len(report.missing)} missing")
    return report
