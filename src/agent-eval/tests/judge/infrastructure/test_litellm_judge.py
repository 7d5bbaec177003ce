"""Tests for LiteLLMJudge infrastructure implementation."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agent_eval.config.domain.judge import JudgeConfig
from agent_eval.judge.domain.payload import GenerateObjectPayload, JudgeMessage
from agent_eval.judge.infrastructure.errors import JudgeInvocationError
from agent_eval.judge.infrastructure.litellm import LiteLLMJudge
from tests.judge.fake_observer import FakeJudgeObserver

_ACOMPLETION = "agent_eval.judge.infrastructure.litellm.litellm.acompletion"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_judge(
    temperature: float = 0.0,
    observer: FakeJudgeObserver | None = None,
) -> tuple[LiteLLMJudge, FakeJudgeObserver]:
    obs = observer if observer is not None else FakeJudgeObserver()
    judge = LiteLLMJudge(
        config=JudgeConfig(model="gpt-4o", temperature=temperature),
        observer=obs,
    )
    return judge, obs


def _make_payload(
    model: str = "gpt-4o-mini", provider: str | None = None
) -> GenerateObjectPayload:
    return GenerateObjectPayload(
        messages=[
            JudgeMessage(role="system", content="You are a grader."),
            JudgeMessage(role="user", content="Grade this."),
        ],
        model=model,
        provider=provider,
        response_schema={"type": "object"},
    )


def _make_acompletion_response(content: str) -> MagicMock:
    """Build a mock litellm response object with the given message content."""
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


# ---------------------------------------------------------------------------
# Construction — temperature warning
# ---------------------------------------------------------------------------


class TestConstruction:
    """LiteLLMJudge emits a temperature warning when temperature > 0.0."""

    def test_zero_temperature_emits_no_warning(self) -> None:
        _, observer = _make_judge(temperature=0.0)

        assert observer.temperature_warnings == []

    def test_positive_temperature_emits_warning(self) -> None:
        _, observer = _make_judge(temperature=0.7)

        assert len(observer.temperature_warnings) == 1
        assert observer.temperature_warnings[0].temperature == pytest.approx(0.7)


# ---------------------------------------------------------------------------
# generate_object() — success path
# ---------------------------------------------------------------------------


class TestGenerateObjectSuccess:
    """generate_object() parses the reply into a JudgeVerdict."""

    async def test_returns_parsed_verdict(self) -> None:
        content = json.dumps({"score": 0.75, "reason": "Mostly right."})
        judge, _ = _make_judge()

        with patch(
            _ACOMPLETION,
            new=AsyncMock(return_value=_make_acompletion_response(content)),
        ):
            verdict = await judge.generate_object(_make_payload())

        assert verdict.score == pytest.approx(0.75)
        assert verdict.reason == "Mostly right."

    async def test_emits_started_and_completed(self) -> None:
        content = json.dumps({"score": 1, "reason": "ok"})
        judge, observer = _make_judge()

        with patch(
            _ACOMPLETION,
            new=AsyncMock(return_value=_make_acompletion_response(content)),
        ):
            await judge.generate_object(_make_payload(model="gpt-4o-mini"))

        assert [event.model for event in observer.started] == ["gpt-4o-mini"]
        assert len(observer.completed) == 1
        assert observer.failed == []

    async def test_provider_prefixes_model(self) -> None:
        content = json.dumps({"score": 1, "reason": "ok"})
        judge, _ = _make_judge()
        mock = AsyncMock(return_value=_make_acompletion_response(content))

        with patch(_ACOMPLETION, new=mock):
            await judge.generate_object(
                _make_payload(model="claude-sonnet", provider="anthropic")
            )

        assert mock.call_args.kwargs["model"] == "anthropic/claude-sonnet"

    async def test_already_qualified_model_is_not_prefixed_twice(self) -> None:
        content = json.dumps({"score": 1, "reason": "ok"})
        judge, _ = _make_judge()
        mock = AsyncMock(return_value=_make_acompletion_response(content))

        with patch(_ACOMPLETION, new=mock):
            await judge.generate_object(
                _make_payload(model="openai/gpt-4o", provider="openai")
            )

        assert mock.call_args.kwargs["model"] == "openai/gpt-4o"

    async def test_sends_messages_schema_and_config_temperature(self) -> None:
        content = json.dumps({"score": 1, "reason": "ok"})
        judge, _ = _make_judge(temperature=0.2)
        mock = AsyncMock(return_value=_make_acompletion_response(content))

        with patch(_ACOMPLETION, new=mock):
            await judge.generate_object(_make_payload())

        kwargs = mock.call_args.kwargs
        assert kwargs["temperature"] == pytest.approx(0.2)
        assert kwargs["messages"][0] == {
            "role": "system",
            "content": "You are a grader.",
        }
        assert kwargs["response_format"]["json_schema"]["schema"] == {"type": "object"}


# ---------------------------------------------------------------------------
# generate_object() — failure paths
# ---------------------------------------------------------------------------


class TestGenerateObjectFailure:
    """Call and parse failures become JudgeInvocationError."""

    async def test_call_failure_raises_retriable_error(self) -> None:
        judge, observer = _make_judge()

        with patch(_ACOMPLETION, new=AsyncMock(side_effect=RuntimeError("boom"))):
            with pytest.raises(JudgeInvocationError) as exc_info:
                await judge.generate_object(_make_payload())

        assert exc_info.value.retriable is True
        assert "boom" in str(exc_info.value)
        assert len(observer.failed) == 1

    async def test_unparseable_reply_raises_non_retriable_error(self) -> None:
        judge, observer = _make_judge()

        with patch(
            _ACOMPLETION,
            new=AsyncMock(return_value=_make_acompletion_response("not json")),
        ):
            with pytest.raises(JudgeInvocationError) as exc_info:
                await judge.generate_object(_make_payload())

        assert exc_info.value.retriable is False
        assert "Failed to parse judge response" in str(exc_info.value)
        assert observer.completed == []
        assert len(observer.failed) == 1
