"""RunMetrics — run-level aggregate counters, averages and totals."""

from pydantic import Field

from agent_eval.run.domain.model import CamelModel


class RunMetrics(CamelModel):
    """Aggregate metrics for a run.

    Fields without a per_case_ or total_ prefix (cost, tokens, steps,
    llm_calls, tool_calls) are sums of per-unit averages; total_* fields are
    sums of true cumulative spend across every execution.
    """

    total_cases: int = Field(ge=0)
    completed_cases: int | None = None
    passed_cases: int = 0
    failed_cases: int = 0
    error_cases: int = 0
    timeout_cases: int = 0
    average_score: float = 0.0
    pass_rate: float = 0.0
    cost: float | None = None
    tokens: float | None = None
    steps: float | None = None
    llm_calls: float | None = None
    tool_calls: float | None = None
    per_case_cost: float | None = None
    per_case_tokens: int | None = None
    per_case_steps: float | None = None
    per_case_llm_calls: float | None = None
    per_case_tool_calls: float | None = None
    total_cost: float | None = None
    total_tokens: float | None = None
    total_duration: float | None = None
    duration: float | None = None
    rubric_scores: dict[str, float] | None = None
    pass_at_k: float | None = None
    pass_all_k: float | None = None
