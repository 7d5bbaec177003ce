"""Run configuration model — repetition, timeout and pass settings for one run."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_RUN_TIMEOUT_MS = 1_200_000


class RunConfig(BaseModel):
    """Per-run settings; accepts camelCase (`passThreshold`) as well as snake_case."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    k: int = Field(default=1, ge=1)
    timeout: int = Field(default=DEFAULT_RUN_TIMEOUT_MS, gt=0)
    pass_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    max_steps: int | None = Field(default=None, ge=1)
