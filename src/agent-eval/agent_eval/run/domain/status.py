"""Lifecycle states for runs and their per-test-case units."""

from enum import StrEnum


class RunUnitStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    TIMEOUT = "timeout"


class RunStatus(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


TERMINAL_UNIT_STATUSES: frozenset[RunUnitStatus] = frozenset(
    {
        RunUnitStatus.PASSED,
        RunUnitStatus.FAILED,
        RunUnitStatus.ERROR,
        RunUnitStatus.TIMEOUT,
    }
)

ACTIVE_UNIT_STATUSES: frozenset[RunUnitStatus] = frozenset(
    {RunUnitStatus.PENDING, RunUnitStatus.RUNNING}
)

RETRYABLE_UNIT_STATUSES: frozenset[RunUnitStatus] = frozenset(
    {RunUnitStatus.ERROR, RunUnitStatus.TIMEOUT}
)

FINISHED_RUN_STATUSES: frozenset[RunStatus] = frozenset(
    {RunStatus.COMPLETED, RunStatus.FAILED}
)
