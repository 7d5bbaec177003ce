"""Timeout Sweeper — force-terminate running units that outlived the per-case timeout."""

from datetime import timedelta

from agent_eval.run.application.clock import Clock, utc_now
from agent_eval.run.application.finalizer import RunFinalizer
from agent_eval.run.application.interrupt import interrupt_operations
from agent_eval.run.application.metrics import compute_progress_metrics
from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.run import Run, RunPatch
from agent_eval.run.domain.runtime import AgentRuntime
from agent_eval.run.domain.status import ACTIVE_UNIT_STATUSES, RunUnitStatus
from agent_eval.run.domain.store import RunStore, ThreadLedger
from agent_eval.run.domain.unit import UnitPatch

_TIMED_OUT = frozenset({RunUnitStatus.TIMEOUT})


class TimeoutSweeper:
    def __init__(
        self,
        store: RunStore,
        ledger: ThreadLedger,
        runtime: AgentRuntime,
        finalizer: RunFinalizer,
        observer: RunObserver,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._runtime = runtime
        self._finalizer = finalizer
        self._observer = observer
        self._clock = clock

    async def sweep(self, run: Run) -> bool:
        """Time out stale running units of run; return True if any unit changed.

        Units are moved to timeout atomically first, then their live operations
        are interrupted (best-effort) and their duration recorded. The run is
        finalized once no unit is left pending or running.
        """
        now = self._clock()
        timeout = timedelta(milliseconds=run.config.timeout)
        if run.started_at is not None and now - run.started_at < timeout:
            return False

        timed_out = await self._store.mark_timed_out(run.id, deadline=now - timeout)
        if not timed_out:
            return False
        self._observer.units_timed_out(run_id=run.id, count=len(timed_out))

        operation_ids: list[str | None] = []
        for unit in timed_out:
            operation_ids.append(unit.eval_result.operation_id)
            operation_ids.extend(
                await self._ledger.thread_operations(run.id, unit.topic_id)
            )
        await interrupt_operations(
            runtime=self._runtime,
            operation_ids=operation_ids,
            run_id=run.id,
            observer=self._observer,
        )

        for unit in timed_out:
            duration = (now - unit.created_at).total_seconds() * 1000
            await self._store.update_unit(
                run.id,
                unit.topic_id,
                UnitPatch(
                    passed=False,
                    score=0.0,
                    eval_result=unit.eval_result.model_copy(
                        update={"completion_reason": "timeout", "duration": duration}
                    ),
                ),
                expected_statuses=_TIMED_OUT,
            )
            await self._ledger.discard(run.id, unit.topic_id)

        units = await self._store.list_units(run.id)
        if not any(unit.status in ACTIVE_UNIT_STATUSES for unit in units):
            await self._finalizer.finalize(run.id)
            return True

        current = await self._store.get_run(run.id)
        if current is not None and current.metrics is not None:
            metrics = compute_progress_metrics(
                base=current.metrics,
                units=units,
                total_cases=current.metrics.total_cases,
            )
            await self._store.update_run(run.id, RunPatch(metrics=metrics))
        return True
