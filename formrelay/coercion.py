"""Scalar value normalization used across the pipeline."""

import re
from numbers import Number
from typing import Any, List, Optional

# Control characters other than tab and newlines.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# A double-quoted segment (may contain commas) or a run of non-quote,
# non-comma characters, followed by a comma or the end of the string.
_ACCEPTANCE_SEGMENT = re.compile(r'(".*?"|[^",]+)(?=\s*,|\s*$)')

_EMAIL_ADDRESS = re.compile(
    r'^(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))'
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])"
    r"|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)


def launder_string(value: Any, default: str = "") -> str:
    """Coerce an untrusted value to a clean string.

    Numbers become their string form, strings lose surrounding whitespace
    and control characters, anything else yields ``default``.

    Examples:
        >>> launder_string("  hello ")
        'hello'
        >>> launder_string(42)
        '42'
        >>> launder_string({"$ne": 1})
        ''
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, Number):
        return str(value)
    if not isinstance(value, str):
        return default
    return _CONTROL_CHARS.sub("", value).strip()


def clamp(value: str, length_limit: Optional[int]) -> str:
    """Keep the first ``length_limit`` characters when the limit is positive."""
    if length_limit and length_limit > 0:
        return value[:length_limit]
    return value


def _strip_quotes(segment: str) -> str:
    segment = segment.strip()
    if len(segment) >= 2 and segment[0] == '"' and segment[-1] == '"':
        segment = segment[1:-1]
    return segment.strip()


def parse_acceptance_list(raw: Optional[str]) -> List[str]:
    """Split a comma-separated acceptance string.

    Double-quoted segments may embed commas. Each segment is trimmed and
    loses one layer of bounding double quotes. An unmatched quote is
    dropped and the text around it is split on commas as usual; a quoted
    segment containing backslash-escaped quotes is kept with the
    backslashes in place.

    Examples:
        >>> parse_acceptance_list('"red, bright", blue')
        ['red, bright', 'blue']
        >>> parse_acceptance_list('')
        []
    """
    if not raw:
        return []
    return [_strip_quotes(segment) for segment in _ACCEPTANCE_SEGMENT.findall(raw)]


def is_email_address(value: Any) -> bool:
    """Check that ``value`` is a string shaped like an email address."""
    return isinstance(value, str) and _EMAIL_ADDRESS.match(value) is not None


__all__ = [
    "launder_string",
    "clamp",
    "parse_acceptance_list",
    "is_email_address",
]
