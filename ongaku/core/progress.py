"""
Progress bar handling for ongaku using Rich library.

This module provides styled progress bars for the phases of a sync.
All progress bars share a common base class and theming.

Phases:
    - Loading the library: No progress bar needed (operation too fast)
    - Listing missing tracks: ListingProgressBar
    - Downloading missing tracks: DownloadProgressBar

Usage:
    from ongaku.core.progress import DownloadProgressBar

    with DownloadProgressBar(total=100) as progress:
        for item in items:
            success = process(item)
            progress.update(success=success)
"""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from rich import get_console
from rich.console import JustifyMethod, OverflowMethod
from rich.highlighter import Highlighter
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TimeElapsedColumn,
)
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "bold cyan",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "bold cyan",
    "progress.percentage": "white",
})


class SizedTextColumn(ProgressColumn):
    """
    Text column with a fixed width.

    Text that exceeds the width is truncated with the overflow method.
    """

    def __init__(
        self,
        text_format: str,
        style: StyleType = "none",
        justify: JustifyMethod = "left",
        markup: bool = True,
        highlighter: Optional[Highlighter] = None,
        overflow: Optional[OverflowMethod] = None,
        width: int = 20,
    ) -> None:
        self.text_format = text_format
        self.justify: JustifyMethod = justify
        self.style = style
        self.markup = markup
        self.highlighter = highlighter
        self.overflow: Optional[OverflowMethod] = overflow
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        _text = self.text_format.format(task=task)
        if self.markup:
            text = Text.from_markup(_text, style=self.style, justify=self.justify)
        else:
            text = Text(_text, style=self.style, justify=self.justify)
        if self.highlighter:
            self.highlighter.highlight(text)

        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


class BaseProgressBar(ABC):
    """
    Abstract base class for all progress bars.

    Provides common functionality:
    - Rich Progress instance with the ongaku theme
    - Context manager support (__enter__/__exit__)
    - Manual start/stop control
    - A lock so update() may be called from worker threads

    Subclasses must implement:
    - _get_status_text(): Return formatted status string
    - update(): Update progress with phase-specific counters
    """

    def __init__(
        self,
        total: int,
        description: str,
        status_width: int = 25
    ):
        """
        Initialize the progress bar.

        Args:
            total: Total number of items to process.
            description: Description to show on the left (e.g., "Downloading").
            status_width: Width of the status column.
        """
        self.total = total
        self.description = description
        self.completed = 0
        self._lock = threading.Lock()

        self.console = get_console()
        self.console.push_theme(PROGRESS_THEME)

        self.progress = Progress(
            SizedTextColumn(
                "[white]{task.description}",
                overflow="ellipsis",
                width=15,
            ),
            SizedTextColumn(
                "{task.fields[status]}",
                width=status_width,
                style="white",
            ),
            BarColumn(bar_width=40, finished_style="green"),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
            refresh_per_second=10,
        )

        self.task_id: Optional[TaskID] = None
        self._started = False

    def __enter__(self) -> "BaseProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        """Start the progress bar (can be called manually)."""
        if not self._started:
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=self.total,
                status=self._get_status_text(),
            )
            self._started = True

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self.console.pop_theme()
            self._started = False

    def _update_progress(self) -> None:
        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )

    @abstractmethod
    def _get_status_text(self) -> str:
        pass

    @abstractmethod
    def update(self, *args, **kwargs) -> None:
        pass


class ListingProgressBar(BaseProgressBar):
    """
    Progress bar for the listing phase (one step per entry).

    Example:
        Listing         ✓ 12  ✗ 1      ━━━━━━━━━━━━━━━━━  13/20 0:00:09
    """

    def __init__(self, total: int, description: str = "Listing"):
        super().__init__(total=total, description=description)
        self.listed = 0
        self.failed = 0

    def _get_status_text(self) -> str:
        return f"[green]✓ {self.listed}[/green]  [red]✗ {self.failed}[/red]"

    def update(self, success: bool) -> None:
        """
        Record one listed entry.

        Args:
            success: Whether the entry's tracks were listed.
        """
        with self._lock:
            self.completed += 1
            if success:
                self.listed += 1
            else:
                self.failed += 1
            self._update_progress()


class DownloadProgressBar(BaseProgressBar):
    """
    Progress bar for the download phase (one step per track).

    Example:
        Downloading     ✓ 120  ✗ 3     ━━━━━━━━━━━━━━━━━  123/200 0:04:31
    """

    def __init__(self, total: int, description: str = "Downloading"):
        super().__init__(total=total, description=description)
        self.downloaded = 0
        self.failed = 0

    def _get_status_text(self) -> str:
        return f"[green]✓ {self.downloaded}[/green]  [red]✗ {self.failed}[/red]"

    def update(self, success: bool) -> None:
        """
        Record one finished download. Called from worker threads.

        Args:
            success: Whether the download succeeded.
        """
        with self._lock:
            self.completed += 1
            if success:
                self.downloaded += 1
            else:
                self.failed += 1
            self._update_progress()


class NullProgress:
    """Stand-in with the progress bar interface that displays nothing."""

    def __init__(self, *args, **kwargs) -> None:
        pass

    def __enter__(self) -> "NullProgress":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    def update(self, *args, **kwargs) -> None:
        pass


__all__ = [
    "PROGRESS_THEME",
    "SizedTextColumn",
    "BaseProgressBar",
    "ListingProgressBar",
    "DownloadProgressBar",
    "NullProgress",
]
