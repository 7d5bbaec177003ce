"""Thread aggregation — fold the k thread results of one unit into a pass@k verdict."""

from agent_eval.run.application.metrics import round_cost, round_half_up
from agent_eval.run.domain.status import RunUnitStatus
from agent_eval.run.domain.unit import ThreadResult, UnitEvalResult, UnitPatch


def aggregate_threads(threads: list[ThreadResult]) -> UnitPatch:
    """Build the unit patch written once every thread of a unit has reported.

    The unit passes if any thread passed (pass@k) and its score is the best
    thread score. Plain telemetry fields hold the per-execution average; the
    total_* fields hold the sum over all threads.
    """
    k = len(threads)
    any_passed = any(thread.passed for thread in threads)
    all_passed = k > 0 and all(thread.passed for thread in threads)
    best_score = max((thread.score for thread in threads), default=0.0)

    total_cost = sum(thread.cost or 0.0 for thread in threads)
    total_duration = sum(thread.duration or 0.0 for thread in threads)
    total_tokens = sum(thread.tokens or 0 for thread in threads)
    total_steps = sum(thread.steps or 0 for thread in threads)
    total_llm_calls = sum(thread.llm_calls or 0 for thread in threads)
    total_tool_calls = sum(thread.tool_calls or 0 for thread in threads)

    eval_result = UnitEvalResult(
        completion_reason="completed" if any_passed else "failed",
        cost=round_cost(total_cost / k) if total_cost else None,
        duration=total_duration / k if total_duration else None,
        tokens=total_tokens / k if total_tokens else None,
        steps=_average_one_decimal(total_steps, k),
        llm_calls=_average_one_decimal(total_llm_calls, k),
        tool_calls=_average_one_decimal(total_tool_calls, k),
        total_cost=round_cost(total_cost) if total_cost else None,
        total_duration=total_duration or None,
        total_tokens=total_tokens or None,
        threads=threads,
        pass_at_k=any_passed,
        pass_all_k=all_passed,
    )
    return UnitPatch(
        status=RunUnitStatus.PASSED if any_passed else RunUnitStatus.FAILED,
        passed=any_passed,
        score=best_score,
        eval_result=eval_result,
    )


def _average_one_decimal(total: float, k: int) -> float | None:
    if not total:
        return None
    return round_half_up(total / k, digits=1)
