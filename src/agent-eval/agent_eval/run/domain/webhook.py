"""CompletionWebhook — payload posted by the agent runtime when an execution ends."""

from typing import Literal

from pydantic import Field

from agent_eval.run.domain.model import CamelModel
from agent_eval.run.domain.telemetry import ExecutionTelemetry


class CompletionWebhook(CamelModel):
    run_id: str = Field(min_length=1)
    test_case_id: str = Field(min_length=1)
    thread_id: str | None = None
    topic_id: str | None = None
    user_id: str | None = None
    operation_id: str | None = None
    status: Literal["completed", "error"] = "completed"
    telemetry: ExecutionTelemetry = Field(default_factory=ExecutionTelemetry)
