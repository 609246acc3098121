"""
Progress bar handling for music-vault using the Rich library.

Only the batch refresh of song notes is long enough to need a progress bar;
single-note commands finish in one or two requests.

Usage:
    from music_vault.core.progress import RefreshProgressBar

    with RefreshProgressBar(total=len(paths)) as progress:
        stats = engine.refresh_all(folder, progress=progress.update)
"""

from typing import Optional

from rich import get_console
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
)
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(30,215,96)",  # Spotify green
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(30,215,96)",
    "progress.percentage": "white",
})


class SizedTextColumn(ProgressColumn):
    """Markup text column padded or cut with an ellipsis to a fixed width."""

    def __init__(self, text_format: str, width: int, style: StyleType = "none") -> None:
        self.text_format = text_format
        self.width = width
        self.style = style
        super().__init__()

    def render(self, task: Task) -> Text:
        text = Text.from_markup(self.text_format.format(task=task), style=self.style)
        text.truncate(max_width=self.width, overflow="ellipsis", pad=True)
        return text


class RefreshProgressBar:
    """
    Progress bar for the song note refresh.

    Displays:
    - Description (e.g., "Refreshing")
    - Status: ✓ refreshed, ✗ failed
    - Progress bar
    - Percentage

    Example:
        Refreshing      ✓ 45  ✗ 2          ━━━━━━━━━━━━━━━━━  47%

    The update() signature matches the progress callback expected by
    SyncEngine.refresh_all(): update(path, success).
    """

    def __init__(self, total: int, description: str = "Refreshing", status_width: int = 25):
        self.total = total
        self.description = description
        self.completed = 0
        self.refreshed = 0
        self.failed = 0

        self.console = get_console()
        self.console.push_theme(PROGRESS_THEME)

        self.progress = Progress(
            SizedTextColumn("[white]{task.description}", width=15),
            SizedTextColumn("{task.fields[status]}", width=status_width, style="white"),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: Optional[TaskID] = None
        self._started = False

    def __enter__(self) -> "RefreshProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
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

    def _get_status_text(self) -> str:
        return f"[green]✓ {self.refreshed}[/green]  [red]✗ {self.failed}[/red]"

    def update(self, path: str, success: bool) -> None:
        """
        Record one processed note.

        Args:
            path: Vault path of the note (unused in the display).
            success: Whether the note was refreshed.
        """
        self.completed += 1
        if success:
            self.refreshed += 1
        else:
            self.failed += 1

        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )
