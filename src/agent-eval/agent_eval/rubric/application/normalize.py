"""Text normalization shared by the string matchers."""


def normalize(text: str, case_sensitive: bool = False) -> str:
    """Trim whitespace and, unless case_sensitive, lowercase."""
    trimmed = text.strip()
    return trimmed if case_sensitive else trimmed.lower()
