"""In-memory RunStore and ThreadLedger.

A single asyncio.Lock serialises every mutation, which makes each unit
update atomic within one event loop. Suitable for tests, the CLI and
single-process deployments.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from agent_eval.run.domain.errors import RunNotFoundError
from agent_eval.run.domain.run import Run, RunPatch
from agent_eval.run.domain.status import ACTIVE_UNIT_STATUSES, RunUnitStatus
from agent_eval.run.domain.unit import RunUnit, ThreadResult, UnitPatch


def _apply[M: BaseModel](model: M, patch: BaseModel) -> M:
    return model.model_copy(
        update={name: getattr(patch, name) for name in patch.model_fields_set}
    )


@dataclass
class _Barrier:
    thread_ids: list[str]
    operations: dict[str, str] = field(default_factory=dict)
    results: dict[str, ThreadResult] = field(default_factory=dict)


class InMemoryRunStore:
    """Satisfies the RunStore and ThreadLedger protocols structurally."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._runs: dict[str, Run] = {}
        self._units: dict[str, dict[str, RunUnit]] = {}
        self._barriers: dict[tuple[str, str], _Barrier] = {}

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def create_run(self, run: Run) -> None:
        async with self._lock:
            self._runs[run.id] = run
            self._units.setdefault(run.id, {})

    async def get_run(self, run_id: str) -> Run | None:
        return self._runs.get(run_id)

    async def update_run(self, run_id: str, patch: RunPatch) -> Run:
        async with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                raise RunNotFoundError(run_id)
            updated = _apply(run, patch)
            self._runs[run_id] = updated
            return updated

    async def delete_run(self, run_id: str) -> list[RunUnit]:
        async with self._lock:
            self._runs.pop(run_id, None)
            removed = list(self._units.pop(run_id, {}).values())
            for key in [key for key in self._barriers if key[0] == run_id]:
                del self._barriers[key]
            return removed

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    async def create_units(self, units: list[RunUnit]) -> None:
        async with self._lock:
            for unit in units:
                self._units.setdefault(unit.run_id, {})[unit.topic_id] = unit

    async def list_units(self, run_id: str) -> list[RunUnit]:
        return list(self._units.get(run_id, {}).values())

    async def find_unit(self, run_id: str, test_case_id: str) -> RunUnit | None:
        for unit in self._units.get(run_id, {}).values():
            if unit.test_case_id == test_case_id:
                return unit
        return None

    async def update_unit(
        self,
        run_id: str,
        topic_id: str,
        patch: UnitPatch,
        expected_statuses: frozenset[RunUnitStatus] | None = None,
    ) -> RunUnit | None:
        async with self._lock:
            unit = self._units.get(run_id, {}).get(topic_id)
            if unit is None:
                return None
            if expected_statuses is not None and unit.status not in expected_statuses:
                return None
            updated = _apply(unit, patch)
            self._units[run_id][topic_id] = updated
            return updated

    async def attach_operation(
        self, run_id: str, topic_id: str, operation_id: str
    ) -> RunUnit | None:
        async with self._lock:
            unit = self._units.get(run_id, {}).get(topic_id)
            if unit is None:
                return None
            updated = unit.model_copy(
                update={
                    "eval_result": unit.eval_result.model_copy(
                        update={"operation_id": operation_id}
                    )
                }
            )
            self._units[run_id][topic_id] = updated
            return updated

    async def mark_timed_out(self, run_id: str, deadline: datetime) -> list[RunUnit]:
        async with self._lock:
            return self._transition(
                run_id,
                select=lambda unit: unit.status is RunUnitStatus.RUNNING
                and unit.created_at < deadline,
                update=lambda unit: {"status": RunUnitStatus.TIMEOUT},
            )

    async def mark_aborted(self, run_id: str) -> list[RunUnit]:
        async with self._lock:
            return self._transition(
                run_id,
                select=lambda unit: unit.status in ACTIVE_UNIT_STATUSES,
                update=lambda unit: {
                    "status": RunUnitStatus.ERROR,
                    "passed": False,
                    "score": 0.0,
                    "eval_result": unit.eval_result.model_copy(
                        update={"error": "Aborted"}
                    ),
                },
            )

    async def delete_units(
        self, run_id: str, statuses: frozenset[RunUnitStatus]
    ) -> list[RunUnit]:
        async with self._lock:
            units = self._units.get(run_id, {})
            removed = [unit for unit in units.values() if unit.status in statuses]
            for unit in removed:
                del units[unit.topic_id]
            return removed

    async def delete_unit(self, run_id: str, test_case_id: str) -> RunUnit | None:
        async with self._lock:
            units = self._units.get(run_id, {})
            for topic_id, unit in units.items():
                if unit.test_case_id == test_case_id:
                    del units[topic_id]
                    return unit
            return None

    def _transition(
        self,
        run_id: str,
        select: Callable[[RunUnit], bool],
        update: Callable[[RunUnit], dict[str, Any]],
    ) -> list[RunUnit]:
        units = self._units.get(run_id, {})
        changed = []
        for topic_id, unit in units.items():
            if select(unit):
                updated = unit.model_copy(update=update(unit))
                units[topic_id] = updated
                changed.append(updated)
        return changed

    # ------------------------------------------------------------------
    # Thread barrier
    # ------------------------------------------------------------------

    async def register_threads(
        self, run_id: str, topic_id: str, thread_ids: list[str]
    ) -> None:
        async with self._lock:
            self._barriers[(run_id, topic_id)] = _Barrier(thread_ids=list(thread_ids))

    async def set_thread_operation(
        self, run_id: str, topic_id: str, thread_id: str, operation_id: str
    ) -> None:
        async with self._lock:
            barrier = self._barriers.get((run_id, topic_id))
            if barrier is not None:
                barrier.operations[thread_id] = operation_id

    async def thread_operations(self, run_id: str, topic_id: str) -> list[str]:
        barrier = self._barriers.get((run_id, topic_id))
        return list(barrier.operations.values()) if barrier is not None else []

    async def complete_thread(
        self, run_id: str, topic_id: str, result: ThreadResult
    ) -> list[ThreadResult] | None:
        async with self._lock:
            barrier = self._barriers.get((run_id, topic_id))
            if barrier is None:
                return None
            if result.thread_id not in barrier.thread_ids:
                return None
            if result.thread_id in barrier.results:
                return None
            barrier.results[result.thread_id] = result
            if len(barrier.results) < len(barrier.thread_ids):
                return None
            return [barrier.results[thread_id] for thread_id in barrier.thread_ids]

    async def discard(self, run_id: str, topic_id: str) -> None:
        async with self._lock:
            self._barriers.pop((run_id, topic_id), None)
