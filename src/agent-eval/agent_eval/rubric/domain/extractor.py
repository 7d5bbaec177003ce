"""Answer extractor configuration — discriminated union on `type` field."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_CHOICE_LABELS: tuple[str, ...] = ("A", "B", "C", "D")


class _ExtractorModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )


class RegexExtractor(_ExtractorModel):
    """Take capture group `group` (default 1) of the first match of `pattern`."""

    type: Literal["regex"] = "regex"
    pattern: str = Field(min_length=1)
    group: int | None = Field(default=None, ge=0)


class DelimiterExtractor(_ExtractorModel):
    """Take the segment after the first or last occurrence of `delimiter`."""

    type: Literal["delimiter"] = "delimiter"
    delimiter: str = Field(min_length=1)
    position: Literal["first", "last"] = "last"


class LastLineExtractor(_ExtractorModel):
    """Take the last non-empty line of the output."""

    type: Literal["last-line"] = "last-line"
    trim: bool = True


class ChoiceIndexExtractor(_ExtractorModel):
    """Map the last standalone choice label (A/B/C/D...) to its zero-based index."""

    type: Literal["choice-index"] = "choice-index"
    labels: list[str] = Field(default_factory=lambda: list(DEFAULT_CHOICE_LABELS))
    pattern: str | None = None


type AnswerExtractor = Annotated[
    RegexExtractor | DelimiterExtractor | LastLineExtractor | ChoiceIndexExtractor,
    Field(discriminator="type"),
]
