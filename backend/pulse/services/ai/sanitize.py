"""Scrub user-contributed text before it is embedded in a prompt."""
from __future__ import annotations

import re

DEFAULT_MAX_LENGTH = 2000
FILTERED_MARKER = "[filtered]"

_OVERRIDE_PATTERNS = [
    re.compile(r"system:", re.IGNORECASE),
    re.compile(r"instruction:", re.IGNORECASE),
    re.compile(r"ignore previous", re.IGNORECASE),
    re.compile(r"disregard", re.IGNORECASE),
]


def sanitize_user_input(text: str | None, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Replace instruction-override phrases and cap the length."""
    if not text:
        return ""
    sanitized = text
    for pattern in _OVERRIDE_PATTERNS:
        sanitized = pattern.sub(FILTERED_MARKER, sanitized)
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized
