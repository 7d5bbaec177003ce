"""Run aggregate — one execution of a dataset's test cases against a target agent."""

from datetime import datetime

from pydantic import Field

from agent_eval.config.domain.run import RunConfig
from agent_eval.run.domain.metrics import RunMetrics
from agent_eval.run.domain.model import CamelModel
from agent_eval.run.domain.status import RunStatus


class Run(CamelModel):
    id: str
    dataset_id: str
    target_agent_id: str | None = None
    name: str | None = None
    config: RunConfig = Field(default_factory=RunConfig)
    metrics: RunMetrics | None = None
    status: RunStatus = RunStatus.IDLE
    started_at: datetime | None = None
    created_at: datetime


class RunPatch(CamelModel):
    """Partial update of a Run; only explicitly set fields are applied."""

    status: RunStatus | None = None
    metrics: RunMetrics | None = None
    started_at: datetime | None = None
