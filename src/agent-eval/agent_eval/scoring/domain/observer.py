"""Observer port for offline scoring — defines events in domain language."""

from typing import Protocol


class ScoringObserver(Protocol):
    """Observer port emitting structured events while a dataset is scored.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def scoring_started(
        self, run_id: str, total_samples: int, max_concurrent: int
    ) -> None: ...

    def sample_scored(
        self, run_id: str, sample_idx: str, passed: bool, score: float
    ) -> None: ...

    def scoring_progress(self, run_id: str, completed: int, total: int) -> None: ...

    def scoring_completed(
        self, run_id: str, total_samples: int, elapsed_seconds: float
    ) -> None: ...
