"""RunObserver port — domain events emitted while orchestrating a run."""

from typing import Protocol


class RunObserver(Protocol):
    """Observer port for run lifecycle events.

    Implementations may log to structlog or record for tests.
    """

    def run_created(self, run_id: str, total_cases: int) -> None: ...

    def run_started(self, run_id: str, total_cases: int, to_execute: int) -> None: ...

    def unit_dispatched(
        self, run_id: str, test_case_id: str, operation_id: str | None
    ) -> None: ...

    def unit_dispatch_failed(self, run_id: str, test_case_id: str, reason: str) -> None: ...

    def thread_dispatch_failed(
        self, run_id: str, test_case_id: str, thread_id: str, reason: str
    ) -> None: ...

    def unit_completed(self, run_id: str, test_case_id: str, status: str) -> None: ...

    def unit_completion_ignored(
        self, run_id: str, test_case_id: str, status: str
    ) -> None: ...

    def unit_evaluation_failed(self, run_id: str, test_case_id: str, reason: str) -> None: ...

    def thread_completed(
        self, run_id: str, test_case_id: str, thread_id: str, passed: bool
    ) -> None: ...

    def units_timed_out(self, run_id: str, count: int) -> None: ...

    def interrupt_failed(self, run_id: str, operation_id: str, reason: str) -> None: ...

    def run_aborted(self, run_id: str, affected_units: int) -> None: ...

    def run_retried(self, run_id: str, retry_count: int) -> None: ...

    def run_finalized(
        self,
        run_id: str,
        status: str,
        average_score: float,
        passed_cases: int,
        total_cases: int,
    ) -> None: ...

    def run_deleted(self, run_id: str) -> None: ...
