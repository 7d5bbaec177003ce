"""Dataset configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field


class DatasetConfig(BaseModel, frozen=True):
    """Where the recorded outputs live and which JSONL keys hold each field."""

    path: Path
    input_key: str = Field(default="input", min_length=1)
    expected_key: str = Field(default="expected", min_length=1)
    output_key: str = Field(default="output", min_length=1)
