"""RunDetail — a run together with all of its units, as served to readers."""

from pydantic import Field

from agent_eval.run.domain.model import CamelModel
from agent_eval.run.domain.run import Run
from agent_eval.run.domain.unit import RunUnit


class RunDetail(CamelModel):
    run: Run
    units: list[RunUnit] = Field(default_factory=list)
