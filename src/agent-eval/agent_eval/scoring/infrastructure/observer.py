"""StructlogScoringObserver — production observer that delegates to structlog."""

import structlog


class StructlogScoringObserver:
    """Logs scoring domain events to structlog.

    Does NOT inherit from ScoringObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def scoring_started(
        self, run_id: str, total_samples: int, max_concurrent: int
    ) -> None:
        self._log.info(
            "scoring.started",
            run_id=run_id,
            total_samples=total_samples,
            max_concurrent=max_concurrent,
        )

    def sample_scored(
        self, run_id: str, sample_idx: str, passed: bool, score: float
    ) -> None:
        self._log.debug(
            "scoring.sample_scored",
            run_id=run_id,
            sample_idx=sample_idx,
            passed=passed,
            score=round(score, 4),
        )

    def scoring_progress(self, run_id: str, completed: int, total: int) -> None:
        self._log.info(
            "scoring.progress",
            run_id=run_id,
            completed=completed,
            total=total,
            percent=round(100.0 * completed / total, 1) if total else 0.0,
        )

    def scoring_completed(
        self, run_id: str, total_samples: int, elapsed_seconds: float
    ) -> None:
        self._log.info(
            "scoring.completed",
            run_id=run_id,
            total_samples=total_samples,
            elapsed_seconds=round(elapsed_seconds, 2),
        )
