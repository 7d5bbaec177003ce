"""Top-level EvalConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field

from agent_eval.config.domain.dataset import DatasetConfig
from agent_eval.config.domain.judge import JudgeConfig
from agent_eval.rubric.domain.extractor import AnswerExtractor
from agent_eval.rubric.domain.rubric import Rubric


class EvalConfig(BaseModel, frozen=True):
    """Root configuration aggregate for an offline scoring run."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    dataset: DatasetConfig
    judge: JudgeConfig | None = None
    pass_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    extractor: AnswerExtractor | None = None
    rubrics: list[Rubric] = Field(default_factory=list)
    max_concurrent: int = Field(default=5, ge=1)
