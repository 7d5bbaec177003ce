"""ExecutionTelemetry — what the agent runtime reports about one execution."""

from typing import Any

from pydantic import Field

from agent_eval.run.domain.model import CamelModel


class ExecutionTelemetry(CamelModel):
    completion_reason: str | None = None
    cost: float | None = Field(default=None, ge=0.0)
    duration: float | None = Field(default=None, ge=0.0)
    llm_calls: int | None = Field(default=None, ge=0)
    steps: int | None = Field(default=None, ge=0)
    tool_calls: int | None = Field(default=None, ge=0)
    total_tokens: int | None = Field(default=None, ge=0)
    error_message: str | None = None
    error_detail: Any = None
