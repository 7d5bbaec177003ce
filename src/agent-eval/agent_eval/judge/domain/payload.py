"""GenerateObjectPayload — the structured request handed to a judge."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class JudgeMessage(BaseModel, frozen=True):
    role: Literal["system", "user"]
    content: str


class GenerateObjectPayload(BaseModel, frozen=True):
    """One judge request: chat messages plus the JSON schema the reply must satisfy."""

    messages: list[JudgeMessage] = Field(min_length=1)
    model: str = Field(min_length=1)
    provider: str | None = None
    response_schema: dict[str, Any]
