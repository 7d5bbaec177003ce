"""Structlog implementation of the RunObserver port."""

import structlog


class StructlogRunObserver:
    """Delegates run domain events to structlog.

    Satisfies the RunObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_created(self, run_id: str, total_cases: int) -> None:
        self._log.info("run.created", run_id=run_id, total_cases=total_cases)

    def run_started(self, run_id: str, total_cases: int, to_execute: int) -> None:
        self._log.info(
            "run.started",
            run_id=run_id,
            total_cases=total_cases,
            to_execute=to_execute,
        )

    def unit_dispatched(
        self, run_id: str, test_case_id: str, operation_id: str | None
    ) -> None:
        self._log.info(
            "run.unit.dispatched",
            run_id=run_id,
            test_case_id=test_case_id,
            operation_id=operation_id,
        )

    def unit_dispatch_failed(self, run_id: str, test_case_id: str, reason: str) -> None:
        self._log.error(
            "run.unit.dispatch_failed",
            run_id=run_id,
            test_case_id=test_case_id,
            reason=reason,
        )

    def thread_dispatch_failed(
        self, run_id: str, test_case_id: str, thread_id: str, reason: str
    ) -> None:
        self._log.error(
            "run.thread.dispatch_failed",
            run_id=run_id,
            test_case_id=test_case_id,
            thread_id=thread_id,
            reason=reason,
        )

    def unit_completed(self, run_id: str, test_case_id: str, status: str) -> None:
        self._log.info(
            "run.unit.completed",
            run_id=run_id,
            test_case_id=test_case_id,
            status=status,
        )

    def unit_completion_ignored(
        self, run_id: str, test_case_id: str, status: str
    ) -> None:
        self._log.warning(
            "run.unit.completion_ignored",
            run_id=run_id,
            test_case_id=test_case_id,
            status=status,
        )

    def unit_evaluation_failed(self, run_id: str, test_case_id: str, reason: str) -> None:
        self._log.error(
            "run.unit.evaluation_failed",
            run_id=run_id,
            test_case_id=test_case_id,
            reason=reason,
        )

    def thread_completed(
        self, run_id: str, test_case_id: str, thread_id: str, passed: bool
    ) -> None:
        self._log.info(
            "run.thread.completed",
            run_id=run_id,
            test_case_id=test_case_id,
            thread_id=thread_id,
            passed=passed,
        )

    def units_timed_out(self, run_id: str, count: int) -> None:
        self._log.warning("run.units_timed_out", run_id=run_id, count=count)

    def interrupt_failed(self, run_id: str, operation_id: str, reason: str) -> None:
        self._log.warning(
            "run.interrupt_failed",
            run_id=run_id,
            operation_id=operation_id,
            reason=reason,
        )

    def run_aborted(self, run_id: str, affected_units: int) -> None:
        self._log.info("run.aborted", run_id=run_id, affected_units=affected_units)

    def run_retried(self, run_id: str, retry_count: int) -> None:
        self._log.info("run.retried", run_id=run_id, retry_count=retry_count)

    def run_finalized(
        self,
        run_id: str,
        status: str,
        average_score: float,
        passed_cases: int,
        total_cases: int,
    ) -> None:
        self._log.info(
            "run.finalized",
            run_id=run_id,
            status=status,
            average_score=average_score,
            passed_cases=passed_cases,
            total_cases=total_cases,
        )

    def run_deleted(self, run_id: str) -> None:
        self._log.info("run.deleted", run_id=run_id)
