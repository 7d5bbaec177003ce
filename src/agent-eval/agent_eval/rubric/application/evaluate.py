"""Evaluation orchestrator — extract, match and weight every rubric for one output."""

import json
from dataclasses import dataclass, field
from typing import Any

from agent_eval.rubric.application.extract import extract
from agent_eval.rubric.application.matchers import match
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.rubric.domain.extractor import AnswerExtractor
from agent_eval.rubric.domain.result import EvaluationResult, MatchResult, RubricResult
from agent_eval.rubric.domain.rubric import AnyOfRubric, ContainsRubric, Rubric
from agent_eval.rubric.domain.test_case import TestCaseContent

DEFAULT_PASS_THRESHOLD = 0.6

DEFAULT_CONTAINS_RUBRIC = ContainsRubric(id="default-contains", name="Default Contains")


@dataclass(frozen=True)
class EvaluateOptions:
    """Benchmark-level evaluation settings.

    `extractor` applies to every rubric that has no extractor of its own.
    """

    extractor: AnswerExtractor | None = None
    pass_threshold: float = DEFAULT_PASS_THRESHOLD
    match_context: MatchContext = field(default_factory=MatchContext)


async def evaluate(
    actual: str,
    rubrics: list[Rubric],
    test_case: TestCaseContent,
    options: EvaluateOptions | None = None,
) -> EvaluationResult:
    """Score actual against every rubric and combine into one weighted verdict.

    With no rubrics, a single `default-contains` rubric is used when the test
    case has an expected answer; otherwise the result fails with
    "No rubrics configured". A JSON-array `expected` is expanded into
    candidates and the best-scoring candidate wins (first one on ties), except
    for any-of rubrics, which carry their own candidate list.

    Never raises for matcher failures; those are reported per rubric.
    """
    opts = options if options is not None else EvaluateOptions()

    effective = list(rubrics)
    if not effective:
        if not test_case.expected:
            return EvaluationResult(
                passed=False, score=0.0, reason="No rubrics configured"
            )
        effective = [DEFAULT_CONTAINS_RUBRIC]

    rubric_results: list[RubricResult] = []
    total_weight = 0.0
    weighted_score = 0.0

    for rubric in effective:
        extractor = rubric.extractor if rubric.extractor is not None else opts.extractor
        extracted = extract(output=actual, extractor=extractor) if extractor else actual

        result = await _match_rubric(
            actual=extracted,
            expected=test_case.expected,
            rubric=rubric,
            context=opts.match_context,
        )
        rubric_results.append(
            RubricResult(
                rubric_id=rubric.id,
                passed=result.passed,
                score=result.score,
                reason=result.reason,
            )
        )
        total_weight += rubric.weight
        weighted_score += result.score * rubric.weight

    score = weighted_score / total_weight if total_weight > 0 else 0.0
    return EvaluationResult(
        passed=score >= opts.pass_threshold,
        score=min(score, 1.0),
        rubric_results=rubric_results,
    )


async def _match_rubric(
    actual: str,
    expected: str | None,
    rubric: Rubric,
    context: MatchContext,
) -> MatchResult:
    candidates = None
    if not isinstance(rubric, AnyOfRubric) and expected:
        candidates = parse_candidates(expected)

    if candidates is None:
        return await match(
            actual=actual, expected=expected, rubric=rubric, context=context
        )
    if not candidates:
        return MatchResult(
            passed=False, score=0.0, reason="Expected candidate list is empty"
        )

    results = [
        await match(actual=actual, expected=candidate, rubric=rubric, context=context)
        for candidate in candidates
    ]
    # max() keeps the first of equal scores
    return max(results, key=lambda result: result.score)


def parse_candidates(expected: str) -> list[str] | None:
    """Return the candidates of a JSON-array expected string, or None if it is not one.

    Non-string elements are kept as their JSON text.
    """
    if not expected.startswith("["):
        return None
    try:
        parsed: Any = json.loads(expected)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    return [
        item if isinstance(item, str) else json.dumps(item, ensure_ascii=False)
        for item in parsed
    ]
