"""Answer extraction — isolate the answer substring from verbose agent output.

Every strategy falls back to returning the output unchanged when nothing
matches, so extraction never raises.
"""

import re
from typing import assert_never

from agent_eval.rubric.domain.extractor import (
    AnswerExtractor,
    ChoiceIndexExtractor,
    DelimiterExtractor,
    LastLineExtractor,
    RegexExtractor,
)


def extract(output: str, extractor: AnswerExtractor) -> str:
    """Apply the extractor to output and return the extracted answer."""
    match extractor:
        case RegexExtractor():
            return _extract_regex(output=output, extractor=extractor)
        case DelimiterExtractor():
            return _extract_delimiter(output=output, extractor=extractor)
        case LastLineExtractor():
            return _extract_last_line(output=output, extractor=extractor)
        case ChoiceIndexExtractor():
            return _extract_choice_index(output=output, extractor=extractor)
        case _:
            assert_never(extractor)


def _extract_regex(output: str, extractor: RegexExtractor) -> str:
    try:
        found = re.search(extractor.pattern, output)
    except re.error:
        return output
    if found is None:
        return output

    group = extractor.group if extractor.group is not None else 1
    if group > found.re.groups:
        return found.group(0)
    value = found.group(group)
    return value if value is not None else found.group(0)


def _extract_delimiter(output: str, extractor: DelimiterExtractor) -> str:
    parts = output.split(extractor.delimiter)
    if len(parts) < 2:
        return output
    segment = parts[1] if extractor.position == "first" else parts[-1]
    return segment.strip()


def _extract_last_line(output: str, extractor: LastLineExtractor) -> str:
    lines = [line for line in output.split("\n") if line.strip()]
    if not lines:
        return output
    last = lines[-1]
    return last.strip() if extractor.trim else last


def _extract_choice_index(output: str, extractor: ChoiceIndexExtractor) -> str:
    """Map the last label occurrence to its index.

    Word boundaries follow ASCII rules so that a label glued to CJK text
    ("答案是B") still counts as standalone.
    """
    labels = [label.upper() for label in extractor.labels]
    pattern = extractor.pattern or (
        r"\b([" + "".join(re.escape(label) for label in labels) + r"])\b"
    )
    try:
        matches = list(re.finditer(pattern, output, flags=re.IGNORECASE | re.ASCII))
    except re.error:
        return output
    if not matches:
        return output

    last = matches[-1]
    letter = last.group(1) if last.re.groups >= 1 and last.group(1) else last.group(0)
    letter = letter.upper()
    if letter not in labels:
        return output
    return str(labels.index(letter))
