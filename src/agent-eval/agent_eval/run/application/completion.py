"""Completion recording — apply execution webhooks to units and track run progress."""

from pydantic import BaseModel

from agent_eval.run.application.evaluation import CaseEvaluator
from agent_eval.run.application.finalizer import RunFinalizer
from agent_eval.run.application.metrics import compute_progress_metrics, round_cost
from agent_eval.run.application.threads import aggregate_threads
from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.run import Run, RunPatch
from agent_eval.run.domain.status import (
    ACTIVE_UNIT_STATUSES,
    FINISHED_RUN_STATUSES,
    RunUnitStatus,
)
from agent_eval.run.domain.store import RunStore, ThreadLedger
from agent_eval.run.domain.unit import RunUnit, ThreadResult, UnitPatch
from agent_eval.run.domain.webhook import CompletionWebhook


class TrajectoryOutcome(BaseModel, frozen=True):
    all_done: bool
    completed_count: int


class ThreadOutcome(BaseModel, frozen=True):
    all_threads_done: bool
    all_run_done: bool


class CompletionRecorder:
    """Applies completion webhooks to units.

    Every unit write is a compare-and-set against the active statuses, so a
    webhook arriving after a timeout, abort or earlier completion never
    touches status or score.
    """

    def __init__(
        self,
        store: RunStore,
        ledger: ThreadLedger,
        evaluator: CaseEvaluator,
        finalizer: RunFinalizer,
        observer: RunObserver,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._evaluator = evaluator
        self._finalizer = finalizer
        self._observer = observer

    async def record_trajectory_completion(
        self, run: Run, webhook: CompletionWebhook
    ) -> TrajectoryOutcome:
        """Record telemetry for a single-execution unit, evaluate it, refresh progress."""
        unit = await self._store.find_unit(run.id, webhook.test_case_id)
        if unit is None or unit.is_terminal or _addressed_elsewhere(unit, webhook):
            self._ignore(run_id=run.id, test_case_id=webhook.test_case_id, unit=unit)
        else:
            await self._apply_trajectory(run=run, unit=unit, webhook=webhook)
        return await self.refresh_progress(run.id)

    async def record_thread_completion(
        self, run: Run, webhook: CompletionWebhook
    ) -> ThreadOutcome:
        """Evaluate one thread and join the unit's barrier."""
        unit = await self._store.find_unit(run.id, webhook.test_case_id)
        if (
            unit is None
            or unit.is_terminal
            or webhook.thread_id is None
            or _addressed_elsewhere(unit, webhook)
        ):
            self._ignore(run_id=run.id, test_case_id=webhook.test_case_id, unit=unit)
            return ThreadOutcome(all_threads_done=False, all_run_done=False)

        try:
            result = await self._evaluator.evaluate_thread(
                run=run,
                test_case_id=webhook.test_case_id,
                topic_id=unit.topic_id,
                thread_id=webhook.thread_id,
                status=webhook.status,
                telemetry=webhook.telemetry,
            )
        except Exception as exc:
            self._observer.unit_evaluation_failed(
                run_id=run.id, test_case_id=webhook.test_case_id, reason=str(exc)
            )
            result = ThreadResult(thread_id=webhook.thread_id, error=str(exc))
        return await self.record_thread_result(run=run, unit=unit, result=result)

    async def record_thread_result(
        self, run: Run, unit: RunUnit, result: ThreadResult
    ) -> ThreadOutcome:
        """Join the barrier with result; the last arrival aggregates the unit."""
        self._observer.thread_completed(
            run_id=run.id,
            test_case_id=unit.test_case_id,
            thread_id=result.thread_id,
            passed=result.passed,
        )
        results = await self._ledger.complete_thread(run.id, unit.topic_id, result)
        if results is None:
            return ThreadOutcome(all_threads_done=False, all_run_done=False)

        patch = aggregate_threads(results)
        await self._write_verdict(unit=unit, patch=patch)
        await self._ledger.discard(run.id, unit.topic_id)

        progress = await self.refresh_progress(run.id)
        return ThreadOutcome(all_threads_done=True, all_run_done=progress.all_done)

    async def refresh_progress(self, run_id: str) -> TrajectoryOutcome:
        """Recompute in-flight metrics; finalize the run once every case is complete.

        A run that is already completed or failed keeps its final metrics.
        """
        run = await self._store.get_run(run_id)
        if run is None or run.metrics is None or not run.metrics.total_cases:
            return TrajectoryOutcome(all_done=False, completed_count=0)
        if run.status in FINISHED_RUN_STATUSES:
            return TrajectoryOutcome(
                all_done=True, completed_count=run.metrics.completed_cases or 0
            )

        total_cases = run.metrics.total_cases
        units = await self._store.list_units(run_id)
        metrics = compute_progress_metrics(
            base=run.metrics, units=units, total_cases=total_cases
        )
        await self._store.update_run(run_id, RunPatch(metrics=metrics))

        completed = metrics.completed_cases or 0
        all_done = completed >= total_cases
        if all_done:
            await self._finalizer.finalize(run_id)
        return TrajectoryOutcome(all_done=all_done, completed_count=completed)

    async def _apply_trajectory(
        self, run: Run, unit: RunUnit, webhook: CompletionWebhook
    ) -> None:
        telemetry = webhook.telemetry
        with_telemetry = unit.eval_result.model_copy(
            update={
                "completion_reason": telemetry.completion_reason or webhook.status,
                "cost": round_cost(telemetry.cost) if telemetry.cost is not None else None,
                "duration": telemetry.duration,
                "llm_calls": telemetry.llm_calls,
                "steps": telemetry.steps,
                "tokens": telemetry.total_tokens,
                "tool_calls": telemetry.tool_calls,
            }
        )

        if webhook.status == "error":
            await self._write_verdict(
                unit=unit,
                patch=UnitPatch(
                    status=RunUnitStatus.ERROR,
                    passed=False,
                    score=0.0,
                    eval_result=with_telemetry.model_copy(
                        update={
                            "error": telemetry.error_message
                            or f"Execution error: {telemetry.completion_reason or 'unknown'}",
                            "error_detail": telemetry.error_detail,
                        }
                    ),
                ),
            )
            return

        recorded = await self._store.update_unit(
            run.id,
            unit.topic_id,
            UnitPatch(eval_result=with_telemetry),
            expected_statuses=ACTIVE_UNIT_STATUSES,
        )
        if recorded is None:
            self._ignore(run_id=run.id, test_case_id=unit.test_case_id, unit=unit)
            return

        try:
            patch = await self._evaluator.evaluate_unit(run=run, unit=recorded)
        except Exception as exc:
            self._observer.unit_evaluation_failed(
                run_id=run.id, test_case_id=unit.test_case_id, reason=str(exc)
            )
            return
        if patch is not None:
            await self._write_verdict(unit=recorded, patch=patch)

    async def _write_verdict(self, unit: RunUnit, patch: UnitPatch) -> None:
        updated = await self._store.update_unit(
            unit.run_id,
            unit.topic_id,
            patch,
            expected_statuses=ACTIVE_UNIT_STATUSES,
        )
        if updated is None:
            self._ignore(run_id=unit.run_id, test_case_id=unit.test_case_id, unit=unit)
            return
        self._observer.unit_completed(
            run_id=unit.run_id, test_case_id=unit.test_case_id, status=updated.status
        )

    def _ignore(self, run_id: str, test_case_id: str, unit: RunUnit | None) -> None:
        self._observer.unit_completion_ignored(
            run_id=run_id,
            test_case_id=test_case_id,
            status=unit.status if unit is not None else "missing",
        )


def _addressed_elsewhere(unit: RunUnit, webhook: CompletionWebhook) -> bool:
    """True when the webhook names a conversation other than the unit's current one.

    A retried unit gets a fresh topic, so a late webhook from the replaced
    execution still carries the old topic id.
    """
    return webhook.topic_id is not None and webhook.topic_id != unit.topic_id
