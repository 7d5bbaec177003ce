"""Benchmark catalog — read-only view of benchmarks, datasets and test cases."""

from typing import Any, Protocol

from pydantic import BaseModel, Field

from agent_eval.rubric.domain.extractor import AnswerExtractor
from agent_eval.rubric.domain.rubric import Rubric, RubricType
from agent_eval.rubric.domain.test_case import TestCaseContent


class Benchmark(BaseModel, frozen=True):
    id: str
    rubrics: list[Rubric] = Field(default_factory=list)
    extractor: AnswerExtractor | None = None


class EvalDataset(BaseModel, frozen=True):
    """A dataset of test cases; eval_mode overrides the benchmark rubrics."""

    id: str
    benchmark_id: str
    eval_mode: RubricType | None = None
    eval_config: dict[str, Any] | None = None
    env_prompt: str | None = None


class TestCase(BaseModel, frozen=True):
    """One materialised test case; eval_mode overrides the dataset's."""

    __test__ = False  # keep pytest from collecting this as a test class

    id: str
    dataset_id: str
    content: TestCaseContent
    sort_order: int = Field(default=0, ge=0)
    eval_mode: RubricType | None = None
    eval_config: dict[str, Any] | None = None


class EvalCatalog(Protocol):
    """Lookup port onto the benchmark persistence layer."""

    async def list_test_cases(self, dataset_id: str) -> list[TestCase]: ...

    async def get_test_case(self, test_case_id: str) -> TestCase | None: ...

    async def get_dataset(self, dataset_id: str) -> EvalDataset | None: ...

    async def get_benchmark(self, benchmark_id: str) -> Benchmark | None: ...
