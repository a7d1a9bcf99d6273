import re
from typing import Optional


_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]+")
_WHITESPACE_RUN = re.compile(r"[ \t]{2,}")


def sanitize_text(value: Optional[str], max_length: Optional[int] = None) -> str:
    """Clean audience supplied text before it is stored.

    Control characters become spaces, runs of spaces collapse, and the result
    is trimmed. An optional maximum length truncates oversized input.
    """
    if not value:
        return ""

    cleaned = _CONTROL_CHARS.sub(" ", value)
    cleaned = _WHITESPACE_RUN.sub(" ", cleaned)
    cleaned = cleaned.strip()

    if max_length is not None:
        cleaned = cleaned[:max_length].rstrip()

    return cleaned


def sanitize_optional(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    return sanitize_text(value, max_length) or None
