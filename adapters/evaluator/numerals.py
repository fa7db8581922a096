"""
Numeral normalization: localized magnitude markers, grouping characters, 💯.

    "1万"     → 10000
    "2.5k"    → 2500
    "1,000 M" → 1000000000
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from contracts import NumberFormatError

_GROUPING_RE = re.compile(r"[\s,'_]")

# Closed, ordered table of (suffix pattern, multiplier); the last matching row wins.
_MARKERS: list[tuple[re.Pattern[str], Decimal]] = [
    (re.compile(r"千$"), Decimal(1_000)),
    (re.compile(r"万$"), Decimal(10_000)),
    (re.compile(r"亿$"), Decimal(100_000_000)),
    (re.compile(r"k$", re.IGNORECASE), Decimal(1_000)),
    (re.compile(r"M$", re.IGNORECASE), Decimal(1_000_000)),
]

_HUNDRED = "💯"


def parse_decimal(text: str) -> Decimal:
    """Strict Decimal parse; raises NumberFormatError for malformed or non-finite text."""
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise NumberFormatError(f"Malformed number: {text!r}") from None
    if not value.is_finite():
        raise NumberFormatError(f"Malformed number: {text!r}")
    return value


def normalize_numeral(text: str) -> Decimal:
    s = text.strip()
    if s == _HUNDRED:
        s = "100"

    marker: re.Pattern[str] | None = None
    multiplier = Decimal(1)
    for pattern, factor in _MARKERS:
        if pattern.search(s):
            marker, multiplier = pattern, factor

    s = _GROUPING_RE.sub("", s)
    if marker is not None:
        s = marker.sub("", s)

    return parse_decimal(s) * multiplier
