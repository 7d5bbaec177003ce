"""Persistence ports for runs, their units and the per-thread barrier."""

from datetime import datetime
from typing import Protocol

from agent_eval.run.domain.run import Run, RunPatch
from agent_eval.run.domain.status import RunUnitStatus
from agent_eval.run.domain.unit import RunUnit, ThreadResult, UnitPatch


class RunStore(Protocol):
    """Row-level atomic storage of runs and run units.

    Every unit mutation is atomic per unit. update_unit is a compare-and-set
    when expected_statuses is given, which is how competing writers (webhooks,
    the timeout sweeper, abort) avoid overwriting a terminal unit.
    """

    async def create_run(self, run: Run) -> None: ...

    async def get_run(self, run_id: str) -> Run | None: ...

    async def update_run(self, run_id: str, patch: RunPatch) -> Run:
        """Apply patch and return the updated run.

        Raises:
            RunNotFoundError: if the run does not exist.
        """
        ...

    async def delete_run(self, run_id: str) -> list[RunUnit]:
        """Delete the run and its units, returning the deleted units."""
        ...

    async def create_units(self, units: list[RunUnit]) -> None: ...

    async def list_units(self, run_id: str) -> list[RunUnit]: ...

    async def find_unit(self, run_id: str, test_case_id: str) -> RunUnit | None: ...

    async def update_unit(
        self,
        run_id: str,
        topic_id: str,
        patch: UnitPatch,
        expected_statuses: frozenset[RunUnitStatus] | None = None,
    ) -> RunUnit | None:
        """Apply patch; return None if the unit is missing or not in expected_statuses."""
        ...

    async def attach_operation(
        self, run_id: str, topic_id: str, operation_id: str
    ) -> RunUnit | None:
        """Set eval_result.operation_id, keeping every other recorded field."""
        ...

    async def mark_timed_out(self, run_id: str, deadline: datetime) -> list[RunUnit]:
        """Move running units created before deadline to timeout and return them."""
        ...

    async def mark_aborted(self, run_id: str) -> list[RunUnit]:
        """Move pending/running units to error with error="Aborted" and return them."""
        ...

    async def delete_units(
        self, run_id: str, statuses: frozenset[RunUnitStatus]
    ) -> list[RunUnit]: ...

    async def delete_unit(self, run_id: str, test_case_id: str) -> RunUnit | None: ...


class ThreadLedger(Protocol):
    """Counted barrier collecting the k thread results of one unit."""

    async def register_threads(
        self, run_id: str, topic_id: str, thread_ids: list[str]
    ) -> None: ...

    async def set_thread_operation(
        self, run_id: str, topic_id: str, thread_id: str, operation_id: str
    ) -> None: ...

    async def thread_operations(self, run_id: str, topic_id: str) -> list[str]: ...

    async def complete_thread(
        self, run_id: str, topic_id: str, result: ThreadResult
    ) -> list[ThreadResult] | None:
        """Record result; return every result exactly once, on the last arrival.

        Repeated arrivals for an already completed thread are ignored.
        """
        ...

    async def discard(self, run_id: str, topic_id: str) -> None: ...
