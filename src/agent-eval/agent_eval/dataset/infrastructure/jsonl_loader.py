"""JSONL dataset loader — reads recorded outputs and returns typed Sample objects."""

import hashlib
import json
from pathlib import Path

from agent_eval.config.domain.dataset import DatasetConfig
from agent_eval.dataset.domain.load_result import DatasetLoadResult
from agent_eval.dataset.domain.observer import DatasetObserver
from agent_eval.dataset.domain.sample import Sample
from agent_eval.dataset.infrastructure.errors import DatasetLoadError
from agent_eval.rubric.domain.test_case import TestCaseContent


class JsonlDatasetLoader:
    """Loads a JSONL dataset file and returns a DatasetLoadResult."""

    def __init__(self, observer: DatasetObserver) -> None:
        self._observer = observer

    def load(self, config: DatasetConfig) -> DatasetLoadResult:
        """
        Load all samples from the JSONL file described by config.

        Emits observer events as loading progresses. Collects ALL per-line errors
        before raising a single DatasetLoadError listing every issue found.

        Raises:
            DatasetLoadError: if the file is not found, any line is invalid JSON,
                or any line is missing the configured input or output key.
        """
        path_str = str(config.path)
        self._observer.dataset_loading_started(
            path=path_str,
            input_key=config.input_key,
            output_key=config.output_key,
        )

        try:
            raw = self._read_bytes(path=config.path)
        except FileNotFoundError:
            reason = f"file not found: {path_str}"
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason)

        lines = [line for line in raw.decode("utf-8").splitlines() if line.strip()]
        samples, errors = self._parse_lines(lines=lines, config=config)

        if errors:
            reason = "; ".join(errors)
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason)

        self._observer.dataset_loading_completed(
            path=path_str,
            total_samples=len(samples),
        )
        return DatasetLoadResult(
            samples=samples,
            sha256=hashlib.sha256(raw).hexdigest(),
        )

    def _read_bytes(self, path: Path) -> bytes:
        with open(path, "rb") as fh:
            return fh.read()

    def _parse_lines(
        self,
        lines: list[str],
        config: DatasetConfig,
    ) -> tuple[list[Sample], list[str]]:
        """Parse each line into a Sample, collecting errors without aborting early."""
        samples: list[Sample] = []
        errors: list[str] = []

        for index, line in enumerate(lines):
            result = self._parse_line(line=line, index=index, config=config)
            if isinstance(result, str):
                errors.append(result)
            else:
                samples.append(result)
                self._observer.dataset_sample_loaded(sample_idx=result.sample_idx)

        return samples, errors

    def _parse_line(self, line: str, index: int, config: DatasetConfig) -> Sample | str:
        """
        Parse a single JSONL line into a Sample.

        Returns a Sample on success, or an error string describing the problem.
        The expected key is optional; a list of accepted answers is stored as a
        JSON array string.
        """
        try:
            data = json.loads(line)
        except json.JSONDecodeError as exc:
            return f"line {index}: invalid JSON: {exc}"
        if not isinstance(data, dict):
            return f"line {index}: expected a JSON object"

        missing = [key for key in (config.input_key, config.output_key) if key not in data]
        if missing:
            keys = ", ".join(f"'{k}'" for k in missing)
            return f"line {index}: missing key(s) {keys}"

        expected = data.get(config.expected_key)
        return Sample(
            sample_idx=str(index),
            content=TestCaseContent(
                input=_as_text(data[config.input_key]),
                expected=None if expected is None else _as_text(expected),
            ),
            output=_as_text(data[config.output_key]),
        )


def _as_text(value: object) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
