"""
Text helpers for turning OCR output into day numbers, titles and times.
"""

import re
from typing import Optional

DAY_TOKEN = re.compile(r"\b(\d{1,2})\b")
BARE_DAY = re.compile(r"^\d{1,2}$")
TIME_PATTERN = re.compile(r"\b(\d{1,2}):(\d{2})(?:\s*(AM|PM)\b)?", re.IGNORECASE)
NIGHT_SHIFT = re.compile(r"[Cc\U0001F319☾\U0001F31B\U0001F31C]")

_DISALLOWED = re.compile(r"[^A-Za-z0-9 \-:]")
_WHITESPACE = re.compile(r"\s+")


def has_day_token(text: str) -> bool:
    return DAY_TOKEN.search(text) is not None


def find_day(text: str) -> Optional[re.Match]:
    """First 1-2 digit token whose value is a possible day of month (1-31)."""
    for match in DAY_TOKEN.finditer(text):
        if 1 <= int(match.group(1)) <= 31:
            return match
    return None


def strip_match(text: str, match: re.Match) -> str:
    return (text[:match.start()] + text[match.end():]).strip()


def is_bare_day(text: str) -> bool:
    return BARE_DAY.match(text.strip()) is not None


def has_night_marker(text: str) -> bool:
    return NIGHT_SHIFT.search(text) is not None


def clean_event_text(text: str) -> str:
    text = _WHITESPACE.sub(" ", text)
    text = _DISALLOWED.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def _to_24h(hours: int, minutes: str, period: Optional[str]) -> str:
    period = period.upper() if period else None
    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes}"


def extract_times(text: str) -> tuple[Optional[str], Optional[str], str]:
    """
    Pull "H:MM [AM|PM]" times out of a title.

    Returns:
        (start_time, end_time, remaining_text). Times are 24-hour "HH:MM";
        every matched time is removed from the remaining text.
    """
    matches = [m for m in TIME_PATTERN.finditer(text) if _is_clock_time(m)]
    if not matches:
        return None, None, text
    times = [_to_24h(int(m.group(1)), m.group(2), m.group(3)) for m in matches]

    remaining = text
    for m in reversed(matches):
        remaining = remaining[:m.start()] + " " + remaining[m.end():]
    return times[0], times[1] if len(times) > 1 else None, clean_event_text(remaining)


def _is_clock_time(match: re.Match) -> bool:
    hours, minutes = int(match.group(1)), int(match.group(2))
    max_hours = 12 if match.group(3) else 23
    return hours <= max_hours and minutes <= 59


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Apply a month offset with year rollover, e.g. (2024, 1, -1) -> (2023, 12)."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1
