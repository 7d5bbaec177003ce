"""Metrics Aggregator — run metrics recomputed from the full unit snapshot.

Both functions are pure: the same units always produce the same metrics, so
concurrent completions may each recompute without drifting.
"""

import math
from collections.abc import Sequence
from datetime import datetime

from agent_eval.run.domain.metrics import RunMetrics
from agent_eval.run.domain.status import RunStatus, RunUnitStatus
from agent_eval.run.domain.unit import RunUnit, UnitEvalResult

_UNSCORED = frozenset({RunUnitStatus.ERROR, RunUnitStatus.TIMEOUT})


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_cost(value: float) -> float:
    """Round a cost to 6 decimals to drop floating-point noise."""
    return round_half_up(value, digits=6)


class _Sums:
    """Running sums of per-unit averages and of cumulative totals."""

    def __init__(self) -> None:
        self.cost = 0.0
        self.tokens = 0.0
        self.steps = 0.0
        self.llm_calls = 0.0
        self.tool_calls = 0.0
        self.total_cost = 0.0
        self.total_tokens = 0.0
        self.total_duration = 0.0

    def add(self, result: UnitEvalResult) -> None:
        self.cost += result.cost or 0.0
        self.tokens += result.tokens or 0.0
        self.steps += result.steps or 0.0
        self.llm_calls += result.llm_calls or 0.0
        self.tool_calls += result.tool_calls or 0.0
        self.total_cost += _first_set(result.total_cost, result.cost)
        self.total_tokens += _first_set(result.total_tokens, result.tokens)
        self.total_duration += _first_set(result.total_duration, result.duration)

    def as_fields(self, cases: int) -> dict[str, float | int | None]:
        """Metric fields derived from the sums; zero sums are reported as None."""
        return {
            "cost": round_cost(self.cost) if self.cost else None,
            "tokens": self.tokens or None,
            "steps": self.steps or None,
            "llm_calls": self.llm_calls or None,
            "tool_calls": self.tool_calls or None,
            "per_case_cost": _per_case(self.cost, cases, round_cost),
            "per_case_tokens": (
                int(round_half_up(self.tokens / cases)) if self.tokens and cases else None
            ),
            "per_case_steps": _per_case(self.steps, cases, _one_decimal),
            "per_case_llm_calls": _per_case(self.llm_calls, cases, _one_decimal),
            "per_case_tool_calls": _per_case(self.tool_calls, cases, _one_decimal),
            "total_cost": round_cost(self.total_cost) if self.total_cost else None,
            "total_tokens": self.total_tokens or None,
            "total_duration": self.total_duration or None,
        }


def _first_set(*values: float | None) -> float:
    for value in values:
        if value is not None:
            return value
    return 0.0


def _one_decimal(value: float) -> float:
    return round_half_up(value, digits=1)


def _per_case(total: float, cases: int, rounding) -> float | None:
    if not total or not cases:
        return None
    return rounding(total / cases)


def _count(units: Sequence[RunUnit], status: RunUnitStatus) -> int:
    return sum(1 for unit in units if unit.status is status)


def compute_run_metrics(
    units: Sequence[RunUnit],
    k: int,
    started_at: datetime | None,
    now: datetime,
) -> RunMetrics:
    """Final metrics for a run whose units have all reached a terminal state.

    average_score covers evaluated units only (error and timeout excluded);
    pass_rate, the per-case fields and pass@k / pass^k divide by the total
    number of cases.
    """
    total_cases = len(units)
    sums = _Sums()
    total_score = 0.0
    rubric_acc: dict[str, list[float]] = {}
    pass_at_k_count = 0
    pass_all_k_count = 0

    for unit in units:
        result = unit.eval_result
        sums.add(result)

        if unit.status not in _UNSCORED:
            if unit.score is not None:
                total_score += unit.score
            for rubric_score in result.rubric_scores:
                rubric_acc.setdefault(rubric_score.rubric_id, []).append(
                    rubric_score.score
                )

        if k > 1 and result.threads:
            if any(thread.passed for thread in result.threads):
                pass_at_k_count += 1
            if all(thread.passed for thread in result.threads):
                pass_all_k_count += 1

    passed_cases = _count(units, RunUnitStatus.PASSED)
    failed_cases = _count(units, RunUnitStatus.FAILED)
    evaluated_cases = passed_cases + failed_cases

    duration = None
    if started_at is not None:
        duration = (now - started_at).total_seconds() * 1000 or None

    metrics = RunMetrics(
        total_cases=total_cases,
        completed_cases=total_cases,
        passed_cases=passed_cases,
        failed_cases=failed_cases,
        error_cases=_count(units, RunUnitStatus.ERROR),
        timeout_cases=_count(units, RunUnitStatus.TIMEOUT),
        average_score=total_score / evaluated_cases if evaluated_cases else 0.0,
        pass_rate=passed_cases / total_cases if total_cases else 0.0,
        duration=duration,
        rubric_scores={
            rubric_id: sum(scores) / len(scores)
            for rubric_id, scores in rubric_acc.items()
        },
        **sums.as_fields(cases=total_cases),
    )
    if k > 1:
        metrics = metrics.model_copy(
            update={
                "pass_at_k": pass_at_k_count / total_cases if total_cases else 0.0,
                "pass_all_k": pass_all_k_count / total_cases if total_cases else 0.0,
            }
        )
    return metrics


def compute_progress_metrics(
    base: RunMetrics | None,
    units: Sequence[RunUnit],
    total_cases: int,
) -> RunMetrics:
    """In-flight metrics: status counts plus telemetry of completed units.

    Per-case fields divide by the completed count. Fields not derived here
    (average_score, pass_rate, ...) are carried over from base.
    """
    completed = [unit for unit in units if unit.is_completed]
    sums = _Sums()
    for unit in completed:
        sums.add(unit.eval_result)

    seed = base if base is not None else RunMetrics(total_cases=total_cases)
    return seed.model_copy(
        update={
            "total_cases": total_cases,
            "completed_cases": len(completed),
            "passed_cases": _count(units, RunUnitStatus.PASSED),
            "failed_cases": _count(units, RunUnitStatus.FAILED),
            "error_cases": _count(units, RunUnitStatus.ERROR),
            "timeout_cases": _count(units, RunUnitStatus.TIMEOUT),
            **sums.as_fields(cases=len(completed)),
        }
    )


def final_run_status(metrics: RunMetrics) -> RunStatus:
    """FAILED when every case ended in error or timeout, COMPLETED otherwise."""
    if metrics.error_cases + metrics.timeout_cases >= metrics.total_cases:
        return RunStatus.FAILED
    return RunStatus.COMPLETED
