"""Rubric models — one variant per rubric type, discriminated on the `type` field."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from agent_eval.rubric.domain.extractor import AnswerExtractor

type RubricType = Literal[
    "equals",
    "contains",
    "starts-with",
    "ends-with",
    "regex",
    "any-of",
    "numeric",
    "levenshtein",
    "json-schema",
    "llm-rubric",
]


class _RubricModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class RegexConfig(_RubricModel):
    pattern: str = Field(min_length=1)


class AnyOfConfig(_RubricModel):
    values: list[str]
    case_sensitive: bool = False


class NumericConfig(_RubricModel):
    value: float | None = None
    tolerance: float | None = Field(default=None, ge=0.0)


class LevenshteinConfig(_RubricModel):
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class JsonSchemaConfig(_RubricModel):
    json_schema: dict[str, Any] = Field(alias="schema")


class LlmRubricConfig(_RubricModel):
    criteria: str = ""
    model: str | None = None
    provider: str | None = None
    system_role: str | None = None


class _RubricBase(_RubricModel):
    """Fields shared by every rubric variant."""

    id: str = Field(min_length=1)
    name: str = ""
    weight: float = Field(default=1.0, ge=0.0)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    extractor: AnswerExtractor | None = None


class EqualsRubric(_RubricBase):
    type: Literal["equals"] = "equals"


class ContainsRubric(_RubricBase):
    type: Literal["contains"] = "contains"


class StartsWithRubric(_RubricBase):
    type: Literal["starts-with"] = "starts-with"


class EndsWithRubric(_RubricBase):
    type: Literal["ends-with"] = "ends-with"


class RegexRubric(_RubricBase):
    type: Literal["regex"] = "regex"
    config: RegexConfig


class AnyOfRubric(_RubricBase):
    type: Literal["any-of"] = "any-of"
    config: AnyOfConfig


class NumericRubric(_RubricBase):
    type: Literal["numeric"] = "numeric"
    config: NumericConfig = Field(default_factory=NumericConfig)


class LevenshteinRubric(_RubricBase):
    type: Literal["levenshtein"] = "levenshtein"
    config: LevenshteinConfig = Field(default_factory=LevenshteinConfig)


class JsonSchemaRubric(_RubricBase):
    type: Literal["json-schema"] = "json-schema"
    config: JsonSchemaConfig


class LlmRubric(_RubricBase):
    type: Literal["llm-rubric"] = "llm-rubric"
    config: LlmRubricConfig = Field(default_factory=LlmRubricConfig)


type Rubric = Annotated[
    EqualsRubric
    | ContainsRubric
    | StartsWithRubric
    | EndsWithRubric
    | RegexRubric
    | AnyOfRubric
    | NumericRubric
    | LevenshteinRubric
    | JsonSchemaRubric
    | LlmRubric,
    Field(discriminator="type"),
]

RUBRIC_ADAPTER: TypeAdapter[Rubric] = TypeAdapter(Rubric)


def rubric_from_eval_mode(
    eval_mode: RubricType, eval_config: dict[str, Any] | None
) -> Rubric:
    """Build the single implicit rubric used when a test case or dataset sets an eval mode.

    Raises:
        pydantic.ValidationError: if eval_config does not fit the rubric type.
    """
    return RUBRIC_ADAPTER.validate_python(
        {
            "id": f"eval-mode-{eval_mode}",
            "name": eval_mode,
            "type": eval_mode,
            "weight": 1,
            "config": eval_config or {},
        }
    )
