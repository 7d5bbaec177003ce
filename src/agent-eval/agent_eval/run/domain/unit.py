"""RunUnit and its evaluation record — one tracked test case within a run."""

from datetime import datetime
from typing import Any

from pydantic import Field

from agent_eval.run.domain.model import CamelModel
from agent_eval.run.domain.status import TERMINAL_UNIT_STATUSES, RunUnitStatus


class RubricScore(CamelModel):
    rubric_id: str
    score: float
    reason: str | None = None


class ThreadResult(CamelModel):
    """Outcome of one of the k repeated executions of a test case."""

    thread_id: str
    passed: bool = False
    score: float = 0.0
    completion_reason: str | None = None
    cost: float | None = None
    duration: float | None = None
    llm_calls: int | None = None
    steps: int | None = None
    tokens: int | None = None
    tool_calls: int | None = None
    error: str | None = None
    error_detail: Any = None
    rubric_scores: list[RubricScore] = Field(default_factory=list)


class UnitEvalResult(CamelModel):
    """Telemetry and verdict details stored on a RunUnit.

    The plain telemetry fields (cost, tokens, duration, steps, llm_calls,
    tool_calls) are per-execution values: for k > 1 they are the average over
    the k threads, while the total_* fields hold the sum across all threads.
    """

    operation_id: str | None = None
    completion_reason: str | None = None
    cost: float | None = None
    duration: float | None = None
    llm_calls: float | None = None
    steps: float | None = None
    tokens: float | None = None
    tool_calls: float | None = None
    total_cost: float | None = None
    total_duration: float | None = None
    total_tokens: float | None = None
    error: str | None = None
    error_detail: Any = None
    rubric_scores: list[RubricScore] = Field(default_factory=list)
    threads: list[ThreadResult] | None = None
    pass_at_k: bool | None = None
    pass_all_k: bool | None = None


class RunUnit(CamelModel):
    """Lifecycle record for one test case within one run ("run topic")."""

    run_id: str
    topic_id: str
    test_case_id: str
    status: RunUnitStatus = RunUnitStatus.PENDING
    passed: bool | None = None
    score: float | None = None
    eval_result: UnitEvalResult = Field(default_factory=UnitEvalResult)
    created_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_UNIT_STATUSES

    @property
    def is_completed(self) -> bool:
        """True once telemetry has been recorded or the unit timed out."""
        return (
            self.eval_result.completion_reason is not None
            or self.status is RunUnitStatus.TIMEOUT
        )


class UnitPatch(CamelModel):
    """Partial update of a RunUnit; only explicitly set fields are applied."""

    status: RunUnitStatus | None = None
    passed: bool | None = None
    score: float | None = None
    eval_result: UnitEvalResult | None = None
