"""Rubric matchers — one pure function per rubric type.

Each matcher reports failure through MatchResult.reason instead of raising;
`match` dispatches a rubric to its matcher.
"""

import json
import re
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from referencing.exceptions import Unresolvable

from agent_eval.rubric.application.llm_rubric import match_llm_rubric
from agent_eval.rubric.application.normalize import normalize
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.rubric.domain.result import MatchResult
from agent_eval.rubric.domain.rubric import (
    AnyOfConfig,
    AnyOfRubric,
    ContainsRubric,
    EndsWithRubric,
    EqualsRubric,
    JsonSchemaConfig,
    JsonSchemaRubric,
    LevenshteinConfig,
    LevenshteinRubric,
    LlmRubric,
    NumericConfig,
    NumericRubric,
    RegexConfig,
    RegexRubric,
    Rubric,
    StartsWithRubric,
)

DEFAULT_NUMERIC_TOLERANCE = 0.01
DEFAULT_SIMILARITY_THRESHOLD = 0.8

_NON_NUMERIC = re.compile(r"[^.\-0-9]")
_FLOAT_PREFIX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _binary(passed: bool, reason: str | None = None) -> MatchResult:
    return MatchResult(passed=passed, score=1.0 if passed else 0.0, reason=reason)


def match_equals(actual: str, expected: str | None) -> MatchResult:
    return _binary(normalize(actual) == normalize(expected or ""))


def match_contains(actual: str, expected: str | None) -> MatchResult:
    return _binary(normalize(expected or "") in normalize(actual))


def match_starts_with(actual: str, expected: str | None) -> MatchResult:
    return _binary(normalize(actual).startswith(normalize(expected or "")))


def match_ends_with(actual: str, expected: str | None) -> MatchResult:
    return _binary(normalize(actual).endswith(normalize(expected or "")))


def match_regex(actual: str, config: RegexConfig) -> MatchResult:
    """Case-insensitive search of the pattern anywhere in actual."""
    try:
        found = re.search(config.pattern, actual, flags=re.IGNORECASE)
    except re.error as exc:
        return _binary(False, reason=f"Invalid regex pattern: {exc}")
    return _binary(found is not None)


def match_any_of(actual: str, config: AnyOfConfig) -> MatchResult:
    target = normalize(actual, case_sensitive=config.case_sensitive)
    return _binary(
        any(
            normalize(value, case_sensitive=config.case_sensitive) == target
            for value in config.values
        )
    )


def parse_float_prefix(text: str) -> float | None:
    """Parse the longest leading float literal of text, or None if there is none."""
    found = _FLOAT_PREFIX.match(text.strip())
    if found is None:
        return None
    return float(found.group(0))


def match_numeric(
    actual: str, expected: str | None, config: NumericConfig
) -> MatchResult:
    """Compare the number found in actual with expected (or config.value).

    Everything except digits, '.' and '-' is stripped from actual before
    parsing, so "$1,234.50" reads as 1234.5.
    """
    actual_num = parse_float_prefix(_NON_NUMERIC.sub("", actual))
    if actual_num is None:
        return _binary(False, reason=f'Could not parse number from "{actual}"')

    if expected is not None:
        expected_num = parse_float_prefix(expected)
        if expected_num is None:
            return _binary(
                False, reason=f'Could not parse expected number from "{expected}"'
            )
    elif config.value is not None:
        expected_num = config.value
    else:
        return _binary(False, reason="No expected number configured")

    tolerance = (
        config.tolerance
        if config.tolerance is not None
        else DEFAULT_NUMERIC_TOLERANCE
    )
    return _binary(abs(actual_num - expected_num) <= tolerance)


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance, computed row by row."""
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(previous[j], current[j - 1], previous[j - 1])
        previous = current
    return previous[len(b)]


def match_levenshtein(
    actual: str, expected: str | None, config: LevenshteinConfig
) -> MatchResult:
    threshold = (
        config.threshold
        if config.threshold is not None
        else DEFAULT_SIMILARITY_THRESHOLD
    )
    a = normalize(actual)
    e = normalize(expected or "")
    max_len = max(len(a), len(e))
    similarity = 1.0 if max_len == 0 else 1 - levenshtein_distance(a, e) / max_len
    return MatchResult(
        passed=similarity >= threshold,
        score=similarity,
        reason=f"similarity={similarity:.3f}",
    )


def match_json_schema(actual: str, config: JsonSchemaConfig) -> MatchResult:
    """Parse actual as JSON and validate it against the configured schema.

    The schema's own `$schema` keyword selects the draft; Draft 7 otherwise.
    A schema whose `$ref` cannot be resolved is reported as an invalid schema.
    """
    try:
        parsed: Any = json.loads(actual)
    except (ValueError, RecursionError):
        return _binary(False, reason="Output is not valid JSON")

    validator_cls = validator_for(config.json_schema, default=Draft7Validator)
    try:
        validator_cls.check_schema(config.json_schema)
        errors = sorted(
            validator_cls(config.json_schema).iter_errors(parsed),
            key=lambda error: error.json_path,
        )
    except SchemaError as exc:
        return _binary(False, reason=f"Invalid JSON schema: {exc.message}")
    except Unresolvable as exc:
        return _binary(False, reason=f"Invalid JSON schema: {exc}")
    except RecursionError:
        return _binary(False, reason="Invalid JSON schema: recursion limit exceeded")

    if not errors:
        return _binary(True)
    return _binary(
        False,
        reason="; ".join(f"{error.json_path}: {error.message}" for error in errors),
    )


async def match(
    actual: str,
    expected: str | None,
    rubric: Rubric,
    context: MatchContext | None = None,
) -> MatchResult:
    """Run the matcher for rubric's type against one expected value."""
    match rubric:
        case EqualsRubric():
            return match_equals(actual=actual, expected=expected)
        case ContainsRubric():
            return match_contains(actual=actual, expected=expected)
        case StartsWithRubric():
            return match_starts_with(actual=actual, expected=expected)
        case EndsWithRubric():
            return match_ends_with(actual=actual, expected=expected)
        case RegexRubric():
            return match_regex(actual=actual, config=rubric.config)
        case AnyOfRubric():
            return match_any_of(actual=actual, config=rubric.config)
        case NumericRubric():
            return match_numeric(
                actual=actual, expected=expected, config=rubric.config
            )
        case LevenshteinRubric():
            return match_levenshtein(
                actual=actual, expected=expected, config=rubric.config
            )
        case JsonSchemaRubric():
            return match_json_schema(actual=actual, config=rubric.config)
        case LlmRubric():
            return await match_llm_rubric(
                actual=actual, expected=expected, rubric=rubric, context=context
            )
        case _:
            rubric_type = getattr(rubric, "type", type(rubric).__name__)
            return _binary(False, reason=f"Unsupported rubric type: {rubric_type}")
