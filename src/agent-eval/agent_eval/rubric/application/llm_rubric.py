"""llm-rubric matcher — delegates scoring to an injected judge."""

from typing import Any

from agent_eval.judge.domain.payload import GenerateObjectPayload, JudgeMessage
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.rubric.domain.result import MatchResult
from agent_eval.rubric.domain.rubric import LlmRubric

DEFAULT_LLM_THRESHOLD = 0.6

DEFAULT_CRITERIA = "Evaluate whether the output is correct and helpful."

DEFAULT_SYSTEM_ROLE = """\
You are an expert evaluation judge. Your task is to score how well an AI output \
meets the given criteria.

Scoring rules:
- Score 1.0: The output fully satisfies the criteria.
- Score 0.0: The output completely fails to meet the criteria.
- Use intermediate values (e.g. 0.3, 0.5, 0.7) for partial matches.

Respond with a JSON object containing "score" (number 0-1) and "reason" \
(brief explanation)."""

JUDGE_SCORE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {
            "type": "number",
            "minimum": 0,
            "maximum": 1,
            "description": "Score from 0.0 to 1.0",
        },
        "reason": {
            "type": "string",
            "description": "Brief explanation for the score",
        },
    },
    "required": ["score", "reason"],
    "additionalProperties": False,
}


def build_judge_user_prompt(criteria: str, actual: str, expected: str | None) -> str:
    parts = [f"[Criteria]\n{criteria}", f"[Output]\n{actual}"]
    if expected:
        parts.append(f"[Expected]\n{expected}")
    return "\n\n".join(parts)


async def match_llm_rubric(
    actual: str,
    expected: str | None,
    rubric: LlmRubric,
    context: MatchContext | None,
) -> MatchResult:
    """Ask the judge to score actual against the rubric criteria.

    The model is rubric.config.model, else context.judge_model. Any judge
    failure becomes a failed result whose reason carries the error message.
    """
    if context is None or context.judge is None:
        return MatchResult(passed=False, score=0.0, reason="LLM judge not available")

    config = rubric.config
    model = config.model or context.judge_model
    if not model:
        return MatchResult(
            passed=False, score=0.0, reason="No judge model configured"
        )

    payload = GenerateObjectPayload(
        messages=[
            JudgeMessage(
                role="system", content=config.system_role or DEFAULT_SYSTEM_ROLE
            ),
            JudgeMessage(
                role="user",
                content=build_judge_user_prompt(
                    criteria=config.criteria or DEFAULT_CRITERIA,
                    actual=actual,
                    expected=expected,
                ),
            ),
        ],
        model=model,
        provider=config.provider,
        response_schema=JUDGE_SCORE_SCHEMA,
    )

    try:
        verdict = await context.judge.generate_object(payload=payload)
    except Exception as exc:
        return MatchResult(
            passed=False, score=0.0, reason=f"LLM judge failed: {exc}"
        )

    score = max(0.0, min(1.0, verdict.score))
    threshold = (
        rubric.threshold if rubric.threshold is not None else DEFAULT_LLM_THRESHOLD
    )
    return MatchResult(passed=score >= threshold, score=score, reason=verdict.reason)
