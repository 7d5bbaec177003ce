"""ScoringSummary — every sample verdict of one offline scoring run."""

from pydantic import BaseModel, Field

from agent_eval.dataset.domain.sample import Sample
from agent_eval.rubric.domain.result import EvaluationResult


class SampleVerdict(BaseModel, frozen=True):
    sample: Sample
    result: EvaluationResult


class ScoringSummary(BaseModel, frozen=True):
    """Immutable summary returned when a scoring run completes.

    Verdicts keep the order of the samples in the dataset file.
    """

    run_id: str = Field(min_length=1)
    dataset_sha256: str = Field(min_length=1)
    config_name: str = Field(min_length=1)
    verdicts: list[SampleVerdict]
