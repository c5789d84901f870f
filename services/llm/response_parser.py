"""
Cleaning and parsing of generated JSON content.

Generators wrap JSON in markdown fences, prepend chatter, or leave trailing
commas. parse_json_response() strips fences, isolates the first bracketed
block that decodes and parses it, attempting one bounded repair before
giving up with a ResponseParseError that carries the offending content.
"""

import json
import logging
import re
from typing import Any, Iterator, Optional

from application.exceptions import ResponseParseError

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")

_CLOSERS = {"{": "}", "[": "]"}

# Openers tried before settling on the first-brace slice
MAX_JSON_CANDIDATES = 20


def strip_code_fences(content: str) -> str:
    """Return the body of the first fenced block, or the text without stray fences."""
    cleaned = (content or "").strip()
    if "```" not in cleaned:
        return cleaned

    match = _FENCED_BLOCK.search(cleaned)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return re.sub(r"```(?:json)?", "", cleaned, flags=re.IGNORECASE).strip()


def _matching_close(text: str, start: int) -> Optional[int]:
    """Index of the bracket closing text[start], skipping string literals."""
    stack = []
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return index
    return None


def repair_json(text: str) -> str:
    """Remove trailing separators before closing brackets."""
    return _TRAILING_COMMA.sub(r"\1", text).strip()


def _decodes(text: str) -> bool:
    for attempt in (text, repair_json(text)):
        try:
            json.loads(attempt)
            return True
        except json.JSONDecodeError:
            continue
    return False


def _candidate_blocks(text: str) -> Iterator[str]:
    """Balanced blocks from each opener in order, then first '{'..last '}'."""
    index = 0
    tried = 0
    while index < len(text) and tried < MAX_JSON_CANDIDATES:
        if text[index] not in _CLOSERS:
            index += 1
            continue
        tried += 1
        end = _matching_close(text, index)
        if end is None:
            index += 1
            continue
        yield text[index:end + 1]
        # Openers inside a balanced block are fragments of it
        index = end + 1

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        yield text[first:last + 1]


def _first_opener_block(text: str, start: int) -> str:
    end = _matching_close(text, start)
    if end is not None:
        return text[start:end + 1]
    last = text.rfind(_CLOSERS[text[start]])
    if last > start:
        return text[start:last + 1]
    return text[start:]


def extract_json_block(text: str) -> str:
    """
    Locate the JSON object or array inside text.

    Chatter before the payload may itself contain brackets ("plan [v2]: {...}"),
    so each opener is tried in turn and the first block that decodes (possibly
    after repair) wins. The first '{'..last '}' slice is the last candidate.
    When nothing decodes, the block starting at the first opener is returned
    so the caller's error carries it; text without any opener is returned as is.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text

    for candidate in _candidate_blocks(text):
        if _decodes(candidate):
            return candidate

    return _first_opener_block(text, min(starts))


def parse_json_response(content: str) -> Any:
    """
    Parse generated content as JSON.

    Args:
        content: Raw generated text

    Returns:
        The decoded JSON value

    Raises:
        ResponseParseError: If the content is not JSON even after repair
    """
    cleaned = extract_json_block(strip_code_fences(content))

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        first_error = e

    try:
        parsed = json.loads(repair_json(cleaned))
        logger.info("Parsed generated JSON after removing trailing separators")
        return parsed
    except json.JSONDecodeError:
        logger.error(
            f"JSON parse error ({len(cleaned)} chars): {first_error}\n{cleaned}"
        )
        raise ResponseParseError(
            f"Failed to parse generated content as JSON: {first_error}. Content: {cleaned}",
            content=cleaned,
        ) from first_error
