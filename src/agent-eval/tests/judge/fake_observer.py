"""FakeJudgeObserver — records judge domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringStartedEvent:
    model: str


@dataclass(frozen=True)
class ScoringCompletedEvent:
    model: str
    duration_ms: int


@dataclass(frozen=True)
class ScoringFailedEvent:
    model: str
    reason: str


@dataclass(frozen=True)
class HighTemperatureWarnedEvent:
    temperature: float


class FakeJudgeObserver:
    """Records all emitted judge events as typed frozen dataclasses.

    Use in tests to assert which events were emitted and with what data,
    without mocking or patching.
    """

    def __init__(self) -> None:
        self.started: list[ScoringStartedEvent] = []
        self.completed: list[ScoringCompletedEvent] = []
        self.failed: list[ScoringFailedEvent] = []
        self.temperature_warnings: list[HighTemperatureWarnedEvent] = []

    def judge_scoring_started(self, model: str) -> None:
        self.started.append(ScoringStartedEvent(model=model))

    def judge_scoring_completed(self, model: str, duration_ms: int) -> None:
        self.completed.append(
            ScoringCompletedEvent(model=model, duration_ms=duration_ms)
        )

    def judge_scoring_failed(self, model: str, reason: str) -> None:
        self.failed.append(ScoringFailedEvent(model=model, reason=reason))

    def judge_high_temperature_warned(self, temperature: float) -> None:
        self.temperature_warnings.append(
            HighTemperatureWarnedEvent(temperature=temperature)
        )
