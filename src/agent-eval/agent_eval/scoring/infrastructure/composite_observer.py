"""CompositeScoringObserver — fans out all events to a list of observers."""

from agent_eval.scoring.domain.observer import ScoringObserver


class CompositeScoringObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from ScoringObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[ScoringObserver]) -> None:
        self._observers = observers

    def scoring_started(
        self, run_id: str, total_samples: int, max_concurrent: int
    ) -> None:
        for obs in self._observers:
            obs.scoring_started(
                run_id=run_id,
                total_samples=total_samples,
                max_concurrent=max_concurrent,
            )

    def sample_scored(
        self, run_id: str, sample_idx: str, passed: bool, score: float
    ) -> None:
        for obs in self._observers:
            obs.sample_scored(
                run_id=run_id, sample_idx=sample_idx, passed=passed, score=score
            )

    def scoring_progress(self, run_id: str, completed: int, total: int) -> None:
        for obs in self._observers:
            obs.scoring_progress(run_id=run_id, completed=completed, total=total)

    def scoring_completed(
        self, run_id: str, total_samples: int, elapsed_seconds: float
    ) -> None:
        for obs in self._observers:
            obs.scoring_completed(
                run_id=run_id,
                total_samples=total_samples,
                elapsed_seconds=elapsed_seconds,
            )
