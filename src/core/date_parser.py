"""Natural-language deadline parsing for chat-driven task updates.

Supports a fixed set of phrases:
- Relative days: 'today', 'tomorrow', 'next week'
- Clock times, optionally with a day phrase: '3pm', '9:30 am', 'tomorrow at 5:15pm'
- Anything dateutil can read: '2026-03-01', 'March 5', 'Mar 5 2026 14:00'
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Optional

from dateutil import parser as dateutil_parser

_DAY_OFFSETS = {
    "today": 0,
    "tomorrow": 1,
    "next week": 7,
}

_TIME_PATTERN = re.compile(r"^(?:at\s+)?(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$")


def _split_day_phrase(text: str) -> tuple[int, str]:
    """Pull a leading or trailing day phrase off `text`.

    Returns (day offset, remaining text). Offset is 0 when none is present.
    """
    for phrase, offset in _DAY_OFFSETS.items():
        if text.startswith(phrase + " "):
            return offset, text[len(phrase):].strip()
        if text.endswith(" " + phrase):
            return offset, text[: -len(phrase)].strip()
    return 0, text


def _parse_clock(text: str) -> Optional[tuple[int, int]]:
    """Parse 'H', 'H:MM' with am/pm, or 'HH:MM' 24h. Bare numbers are rejected."""
    match = _TIME_PATTERN.match(text)
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2)) if match.group(2) else 0
    meridiem = match.group(3)

    if match.group(2) is None and meridiem is None:
        return None
    if minutes > 59:
        return None
    if meridiem:
        if not 1 <= hours <= 12:
            return None
        if meridiem == "pm" and hours < 12:
            hours += 12
        if meridiem == "am" and hours == 12:
            hours = 0
    elif hours > 23:
        return None
    return hours, minutes


def parse_natural_date(text: str, now: Optional[datetime] = None) -> Optional[str]:
    """Resolve a deadline phrase to an ISO-8601 datetime string.

    Args:
        text: Deadline as the user or model phrased it
        now: Reference time (defaults to datetime.now())

    Returns:
        ISO string, or None if the text cannot be read as a date
    """
    if not text or not text.strip():
        return None
    if now is None:
        now = datetime.now()

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    lowered = " ".join(text.lower().split())

    if lowered in _DAY_OFFSETS:
        return (midnight + timedelta(days=_DAY_OFFSETS[lowered])).isoformat()

    offset, rest = _split_day_phrase(lowered)
    clock = _parse_clock(rest)
    if clock is not None:
        hours, minutes = clock
        resolved = midnight + timedelta(days=offset)
        return resolved.replace(hour=hours, minute=minutes).isoformat()

    # Generic dates: missing parts default to today at midnight
    try:
        parsed = dateutil_parser.parse(text, default=midnight)
    except (ValueError, OverflowError, dateutil_parser.ParserError):
        return None
    return parsed.isoformat()
