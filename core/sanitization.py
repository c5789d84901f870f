"""
Cleaning of free-text profile fields before they reach a prompt.

Sex, training level, goal and sport are typed by the user and pasted into
the analysis prompt line by line, so a field must stay on one line and
within a bounded length. No imports from models or services.
"""

import re
from typing import Optional

from core.constants import MAX_PROFILE_TEXT_LENGTH

# Line breaks, tabs and C0/C1 control characters
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_SPACE_RUNS = re.compile(r" {2,}")


def sanitize_user_input(value: str, max_length: int = MAX_PROFILE_TEXT_LENGTH) -> str:
    """
    Flatten a profile field to a single prompt-safe line.

    Control characters become spaces, space runs collapse, and the result
    is stripped and cut to max_length.
    """
    flattened = _CONTROL_CHARS.sub(" ", value)
    flattened = _SPACE_RUNS.sub(" ", flattened).strip()
    return flattened[:max_length]


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    """Profile fields left blank after cleaning count as not given."""
    if value is None:
        return None
    clean = sanitize_user_input(str(value))
    return clean or None
