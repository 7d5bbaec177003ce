"""AgentRuntime port — starts and interrupts agent executions."""

from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field


class WebhookTarget(BaseModel, frozen=True):
    url: str
    body: dict[str, Any] = Field(default_factory=dict)


class ExecRequest(BaseModel, frozen=True):
    """Everything the runtime needs to run the target agent on one prompt."""

    agent_id: str | None = None
    topic_id: str
    thread_id: str | None = None
    prompt: str
    env_prompt: str | None = None
    max_steps: int | None = None
    approval_mode: Literal["headless"] = "headless"
    completion_webhook: WebhookTarget


class ExecResponse(BaseModel, frozen=True):
    operation_id: str | None = None


class AgentRuntime(Protocol):
    """External agent-execution service.

    exec_agent returns as soon as the execution is accepted; completion is
    reported later through the request's webhook.
    """

    async def exec_agent(self, request: ExecRequest) -> ExecResponse: ...

    async def interrupt_operation(self, operation_id: str) -> None: ...
