import re

_SCRIPT_STYLE_PATTERN = re.compile(
    r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)
_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def strip_tags(text: str) -> str:
    """Remove HTML tags, dropping script and style elements with their content.

    Line breaks inside the text are preserved; surrounding whitespace is not.
    """
    text = _SCRIPT_STYLE_PATTERN.sub("", text)
    return _TAG_PATTERN.sub("", text).strip()


def sanitize_text_field(value: str) -> str:
    """Normalize a single-line form value.

    Strips tags, collapses every run of whitespace (including newlines and
    tabs) to one space, and trims the result.
    """
    return _WHITESPACE_PATTERN.sub(" ", strip_tags(str(value))).strip()
