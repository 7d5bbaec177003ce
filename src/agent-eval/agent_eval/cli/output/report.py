"""Scoring report — summary statistics and the JSON document written per run."""

import time
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from pydantic import BaseModel

from agent_eval.config.domain.config import EvalConfig
from agent_eval.scoring.domain.summary import SampleVerdict, ScoringSummary

type JsonDict = dict[str, Any]


def _agent_eval_version() -> str:
    try:
        return version("agent-eval")
    except PackageNotFoundError:
        return "dev"


class ScoringStats(BaseModel, frozen=True):
    total: int
    passed: int
    pass_rate: float
    average_score: float
    rubric_scores: dict[str, float]


def summarize(verdicts: list[SampleVerdict]) -> ScoringStats:
    """Pass counts, mean score and per-rubric mean scores over all verdicts."""
    total = len(verdicts)
    passed = sum(1 for verdict in verdicts if verdict.result.passed)

    rubric_acc: dict[str, list[float]] = {}
    for verdict in verdicts:
        for rubric_result in verdict.result.rubric_results:
            rubric_acc.setdefault(rubric_result.rubric_id, []).append(
                rubric_result.score
            )

    return ScoringStats(
        total=total,
        passed=passed,
        pass_rate=passed / total if total else 0.0,
        average_score=(
            sum(verdict.result.score for verdict in verdicts) / total if total else 0.0
        ),
        rubric_scores={
            rubric_id: sum(scores) / len(scores)
            for rubric_id, scores in rubric_acc.items()
        },
    )


def _sample_json(verdict: SampleVerdict) -> JsonDict:
    sample = verdict.sample
    result = verdict.result
    return {
        "sample_idx": sample.sample_idx,
        "input": sample.content.input,
        "expected": sample.content.expected,
        "output": sample.output,
        "passed": result.passed,
        "score": result.score,
        "reason": result.reason,
        "rubric_results": [
            rubric_result.model_dump(mode="json") for rubric_result in result.rubric_results
        ],
    }


def build_report(summary: ScoringSummary, config: EvalConfig) -> JsonDict:
    stats = summarize(summary.verdicts)
    return {
        "schema_version": "1",
        "run_id": summary.run_id,
        "retrieved_timestamp": str(time.time()),
        "source": {
            "name": "agent-eval",
            "version": _agent_eval_version(),
        },
        "config": {
            "name": config.name,
            "version": config.version,
            "pass_threshold": config.pass_threshold,
            "judge_model": config.judge.model if config.judge else None,
            "rubrics": [rubric.model_dump(mode="json", by_alias=True) for rubric in config.rubrics],
        },
        "dataset": {
            "path": str(config.dataset.path),
            "sha256": summary.dataset_sha256,
        },
        "summary": stats.model_dump(),
        "samples": [_sample_json(verdict) for verdict in summary.verdicts],
    }
