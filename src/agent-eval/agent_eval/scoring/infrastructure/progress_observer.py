"""ProgressScoringObserver — renders a Rich progress bar of scored samples to stderr."""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressScoringObserver:
    """Shows one progress bar with a running pass count while samples are scored.

    Pass ``disabled=True`` to track state without any terminal output (useful in tests).

    Does NOT inherit from ScoringObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._passed = 0
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None

    @property
    def passed(self) -> int:
        return self._passed

    def scoring_started(
        self, run_id: str, total_samples: int, max_concurrent: int
    ) -> None:
        self._passed = 0
        if self._disabled:
            return
        self._progress = Progress(
            TextColumn("[bold]Scoring[/bold]"),
            BarColumn(bar_width=40, complete_style="bright_green"),
            MofNCompleteColumn(),
            TextColumn("[green]{task.fields[passed]} passed[/green]"),
            TimeElapsedColumn(),
            console=Console(stderr=True),
            refresh_per_second=10,
        )
        self._task_id = self._progress.add_task(
            description="scoring", total=float(total_samples), passed=0
        )
        self._progress.start()

    def sample_scored(
        self, run_id: str, sample_idx: str, passed: bool, score: float
    ) -> None:
        if passed:
            self._passed += 1

    def scoring_progress(self, run_id: str, completed: int, total: int) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id, completed=completed, passed=self._passed
            )

    def scoring_completed(
        self, run_id: str, total_samples: int, elapsed_seconds: float
    ) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task_id = None
