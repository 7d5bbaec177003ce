"""Run finalization — full metrics recomputation once every unit is terminal."""

from agent_eval.run.application.clock import Clock, utc_now
from agent_eval.run.application.metrics import compute_run_metrics, final_run_status
from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.run import Run, RunPatch
from agent_eval.run.domain.status import RunStatus
from agent_eval.run.domain.store import RunStore


class RunFinalizer:
    def __init__(
        self, store: RunStore, observer: RunObserver, clock: Clock = utc_now
    ) -> None:
        self._store = store
        self._observer = observer
        self._clock = clock

    async def finalize(self, run_id: str) -> Run | None:
        """Recompute metrics from all units and set the final run status.

        Aborted runs keep their status. Returns the updated run, or None when
        the run is gone or aborted.
        """
        run = await self._store.get_run(run_id)
        if run is None or run.status is RunStatus.ABORTED:
            return None

        units = await self._store.list_units(run_id)
        metrics = compute_run_metrics(
            units=units,
            k=run.config.k,
            started_at=run.started_at,
            now=self._clock(),
        )
        status = final_run_status(metrics)
        updated = await self._store.update_run(
            run_id, RunPatch(status=status, metrics=metrics)
        )
        self._observer.run_finalized(
            run_id=run_id,
            status=status,
            average_score=metrics.average_score,
            passed_cases=metrics.passed_cases,
            total_cases=metrics.total_cases,
        )
        return updated
