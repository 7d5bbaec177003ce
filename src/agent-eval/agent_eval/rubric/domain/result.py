"""Result value objects produced by matchers and by the evaluation orchestrator."""

from pydantic import BaseModel, Field


class MatchResult(BaseModel, frozen=True):
    """Outcome of running one matcher against one expected value."""

    passed: bool
    score: float = Field(ge=0.0, le=1.0)
    reason: str | None = None


class RubricResult(BaseModel, frozen=True):
    """MatchResult tagged with the rubric that produced it."""

    rubric_id: str
    passed: bool
    score: float = Field(ge=0.0, le=1.0)
    reason: str | None = None


class EvaluationResult(BaseModel, frozen=True):
    """Immutable verdict for one agent output across all rubrics."""

    passed: bool
    score: float = Field(ge=0.0, le=1.0)
    reason: str | None = None
    rubric_results: list[RubricResult] = Field(default_factory=list)
