"""Sample domain value object — one recorded agent output with its test case."""

from pydantic import BaseModel

from agent_eval.rubric.domain.test_case import TestCaseContent


class Sample(BaseModel, frozen=True):
    """Immutable value object pairing a test case with the output to score."""

    sample_idx: str
    content: TestCaseContent
    output: str
