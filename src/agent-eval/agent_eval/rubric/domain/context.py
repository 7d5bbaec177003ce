"""MatchContext — capabilities handed to matchers that call out to a judge."""

from dataclasses import dataclass

from agent_eval.judge.domain.judge import Judge


@dataclass(frozen=True)
class MatchContext:
    """Judge capability and the fallback judge model for llm-rubric matching.

    Both fields are optional: a missing judge or model produces a failed match
    rather than an error.
    """

    judge: Judge | None = None
    judge_model: str | None = None
