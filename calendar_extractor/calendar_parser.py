"""
Calendar Parser — Rebuilds dated events from text recognized in marked regions.

Fragments are put in reading order, grouped into week rows by their vertical
position, and each day number is resolved to the previous, requested or next
month by a MonthTracker. The text next to a day number becomes the event title.
"""

import calendar
import logging
import uuid
from datetime import date
from functools import cmp_to_key
from typing import Optional

from .models import (CalendarEvent, CalendarMode, MonthContext, ParsedCalendarData,
                     RecognizedFragment)
from .month_tracker import MonthTracker
from .text_utils import (clean_event_text, extract_times, find_day, has_day_token,
                         has_night_marker, is_bare_day, shift_month, strip_match)

logger = logging.getLogger(__name__)

ROW_TOLERANCE = 50
MAX_WEEKS = 6
SAME_ROW_TOLERANCE = 60
BELOW_TOLERANCE = 100
BELOW_X_TOLERANCE = 50
NEARBY_X_TOLERANCE = 150

NIGHT_SHIFT_TITLE = "nightshift"
DAY_SHIFT_TITLE = "dayshift"


def _reading_order(a: RecognizedFragment, b: RecognizedFragment) -> int:
    dy = a.region.y - b.region.y
    if abs(dy) >= ROW_TOLERANCE:
        return dy
    return a.region.x - b.region.x


def sort_fragments(fragments: list[RecognizedFragment]) -> list[RecognizedFragment]:
    """Top to bottom, then left to right within a row of ROW_TOLERANCE pixels."""
    return sorted(fragments, key=cmp_to_key(_reading_order))


def find_week_rows(fragments: list[RecognizedFragment]) -> list[int]:
    """
    Cluster the Y positions of fragments holding a day-like number into rows.

    A month view never needs more than MAX_WEEKS rows, so anything above that
    (month names, weekday headers read as numbers) is dropped from the top.
    """
    ys = sorted(f.region.y for f in fragments if has_day_token(f.text))
    rows: list[int] = []
    for y in ys:
        if not rows or abs(y - rows[-1]) >= ROW_TOLERANCE:
            rows.append(y)
    if len(rows) > MAX_WEEKS:
        logger.debug(f"  Dropping {len(rows) - MAX_WEEKS} header rows")
        rows = rows[len(rows) - MAX_WEEKS:]
    return rows


def assign_week_index(fragment: RecognizedFragment, rows: list[int]) -> int:
    if not rows:
        return 0
    distances = [abs(fragment.region.y - row) for row in rows]
    return distances.index(min(distances))


def _is_title_neighbour(fragment: RecognizedFragment, candidate: RecognizedFragment) -> bool:
    dy = candidate.region.y - fragment.region.y
    dx = abs(candidate.region.x - fragment.region.x)
    same_row = abs(dy) < SAME_ROW_TOLERANCE
    below = 0 < dy < BELOW_TOLERANCE and dx < BELOW_X_TOLERANCE
    return (same_row or below) and dx < NEARBY_X_TOLERANCE and not is_bare_day(candidate.text)


def _find_title(ordered: list[RecognizedFragment], index: int, remainder: str,
                mode: CalendarMode) -> str:
    if mode is CalendarMode.SHIFT_TRACKING:
        return NIGHT_SHIFT_TITLE if has_night_marker(ordered[index].text) else DAY_SHIFT_TITLE

    title = clean_event_text(remainder) if len(remainder) > 1 else ""
    if not title and index + 1 < len(ordered):
        neighbour = ordered[index + 1]
        if _is_title_neighbour(ordered[index], neighbour):
            title = clean_event_text(neighbour.text)
            logger.debug(f"    title from neighbouring region: '{title}'")
    return title


def _resolve_date(year: int, month: int, context: MonthContext, day: int) -> Optional[date]:
    actual_year, actual_month = shift_month(year, month, context.offset)
    try:
        return date(actual_year, actual_month, day)
    except ValueError:
        logger.warning(f"  Dropping day {day}: not a date in {actual_year}-{actual_month:02d}")
        return None


def _validate(year, month, mode) -> CalendarMode:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValueError(f"Month must be an integer between 1 and 12, got {month!r}")
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
        raise ValueError(f"Year must be an integer between 1 and 9999, got {year!r}")
    try:
        return CalendarMode(mode)
    except ValueError:
        raise ValueError(f"Unknown calendar mode: {mode!r}") from None


def parse_calendar(fragments: list[RecognizedFragment], year: int, month: int,
                   mode: CalendarMode | str = CalendarMode.STANDARD) -> ParsedCalendarData:
    """
    Reconstruct the events marked on a month view.

    Args:
        fragments: Recognized text with its region, in any order.
        year: Year of the month shown.
        month: Month shown, 1-12.
        mode: STANDARD uses the recognized text as the title; SHIFT_TRACKING
              records every marked day as a day or night shift.

    Returns:
        ParsedCalendarData echoing (year, month), events in reading order.

    Raises:
        ValueError: If year, month or mode is invalid.
    """
    mode = _validate(year, month, mode)
    result = ParsedCalendarData(year=year, month=month)
    if not fragments:
        return result

    ordered = sort_fragments(fragments)
    rows = find_week_rows(ordered)
    tracker = MonthTracker(calendar.monthrange(year, month)[1])
    seen: set[tuple[date, str]] = set()

    logger.debug(f"  Parsing {len(ordered)} fragments in {len(rows)} rows "
                 f"for {year}-{month:02d} ({mode.value})")

    for i, fragment in enumerate(ordered):
        match = find_day(fragment.text)
        if match is None:
            logger.debug(f"    skipping '{fragment.text}': no day number")
            continue
        day = int(match.group(1))
        week = assign_week_index(fragment, rows)
        context = tracker.classify(day, week)

        title = _find_title(ordered, i, strip_match(fragment.text, match), mode)
        if not title:
            continue
        event_date = _resolve_date(year, month, context, day)
        if event_date is None:
            continue
        if (event_date, title) in seen:
            logger.debug(f"    skipping duplicate {event_date} '{title}'")
            continue
        seen.add((event_date, title))

        start_time, end_time, clean_title = extract_times(title)
        event = CalendarEvent(id=f"event-{uuid.uuid4().hex}", title=clean_title, date=event_date,
                              start_time=start_time, end_time=end_time)
        result.events.append(event)
        logger.debug(f"    {event_date} '{event.title}' ({context.value} month)")

    logger.info(f"  Parsed {len(result.events)} events for {year}-{month:02d}")
    return result
