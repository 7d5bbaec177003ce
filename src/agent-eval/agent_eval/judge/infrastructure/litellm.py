"""LiteLLMJudge — judge implementation using LiteLLM for structured scoring."""

import time

import litellm

from agent_eval.config.domain.judge import JudgeConfig
from agent_eval.judge.domain.observer import JudgeObserver
from agent_eval.judge.domain.payload import GenerateObjectPayload
from agent_eval.judge.domain.score import JudgeVerdict
from agent_eval.judge.infrastructure.errors import JudgeInvocationError


class LiteLLMJudge:
    """Judge implementation that delegates to an LLM via LiteLLM.

    The model comes from each payload; temperature always comes from config.
    """

    def __init__(self, config: JudgeConfig, observer: JudgeObserver) -> None:
        litellm.suppress_debug_info = True
        self._config = config
        self._observer = observer

        if config.temperature > 0.0:
            self._observer.judge_high_temperature_warned(
                temperature=config.temperature
            )

    async def generate_object(self, payload: GenerateObjectPayload) -> JudgeVerdict:
        """Invoke the LLM judge and return a structured JudgeVerdict.

        Raises:
            JudgeInvocationError: if the LLM call fails or the response cannot
                be parsed into a JudgeVerdict.
        """
        model = _qualified_model(model=payload.model, provider=payload.provider)
        self._observer.judge_scoring_started(model=model)

        start = time.monotonic()
        try:
            response = await litellm.acompletion(
                model=model,
                temperature=self._config.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "judge_score",
                        "schema": payload.response_schema,
                        "strict": True,
                    },
                },
                messages=[
                    {"role": message.role, "content": message.content}
                    for message in payload.messages
                ],
            )
        except Exception as exc:
            reason = str(exc)
            self._observer.judge_scoring_failed(model=model, reason=reason)
            raise JudgeInvocationError(reason=reason, retriable=True) from exc

        duration_ms = int((time.monotonic() - start) * 1000)

        raw_content: str = response.choices[0].message.content
        try:
            verdict = JudgeVerdict.model_validate_json(raw_content)
        except Exception as exc:
            reason = f"Failed to parse judge response: {exc}"
            self._observer.judge_scoring_failed(model=model, reason=reason)
            raise JudgeInvocationError(reason=reason) from exc

        self._observer.judge_scoring_completed(model=model, duration_ms=duration_ms)
        return verdict


def _qualified_model(model: str, provider: str | None) -> str:
    """Prefix the model with its LiteLLM provider route unless it already has one."""
    if provider is None or model.startswith(f"{provider}/"):
        return model
    return f"{provider}/{model}"
