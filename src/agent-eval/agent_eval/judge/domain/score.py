"""JudgeVerdict — structured output from a single judge invocation."""

from pydantic import BaseModel


class JudgeVerdict(BaseModel, frozen=True):
    """Raw score and explanation returned by the judge model.

    The score is left unbounded here; callers clamp it into [0, 1] so that a
    slightly out-of-range reply still produces a usable verdict.
    """

    score: float
    reason: str = ""
