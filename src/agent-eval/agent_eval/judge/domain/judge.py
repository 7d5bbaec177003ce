"""Judge Protocol — structural interface for all judge implementations."""

from typing import Protocol

from agent_eval.judge.domain.payload import GenerateObjectPayload
from agent_eval.judge.domain.score import JudgeVerdict


class Judge(Protocol):
    """Structural interface satisfied by any judge implementation.

    Implementations may raise; the llm-rubric matcher converts every failure
    into a failed match result.
    """

    async def generate_object(self, payload: GenerateObjectPayload) -> JudgeVerdict: ...
