"""JudgeObserver port — domain events emitted during judge invocations."""

from typing import Protocol


class JudgeObserver(Protocol):
    """Observer port for judge domain events.

    Implementations may log to structlog or record for tests.
    """

    def judge_scoring_started(self, model: str) -> None: ...

    def judge_scoring_completed(self, model: str, duration_ms: int) -> None: ...

    def judge_scoring_failed(self, model: str, reason: str) -> None: ...

    def judge_high_temperature_warned(self, temperature: float) -> None: ...
