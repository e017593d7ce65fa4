"""
ICS Builder — Serializes reconstructed events into an iCalendar (.ics) file.

Events without a time become all-day entries. Timed events are written as
floating local times; a start without an end lasts one hour.
"""

import logging
import os
from datetime import date, datetime, timedelta, timezone

from icalendar import Calendar, Event as ICalEvent

from .models import CalendarEvent, ParsedCalendarData

logger = logging.getLogger(__name__)

PRODID = "-//calendar-extractor//Marked Calendar Extractor//EN"
DEFAULT_DESCRIPTION = "Extracted from calendar image"
DEFAULT_DURATION = timedelta(hours=1)


def _at(day: date, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes)


def _to_ical_event(event: CalendarEvent, stamp: datetime) -> ICalEvent:
    ve = ICalEvent()
    ve.add("uid", event.id)
    ve.add("dtstamp", stamp)
    ve.add("summary", event.title)

    if event.start_time:
        start = _at(event.date, event.start_time)
        ve.add("dtstart", start)
        if event.end_time:
            end = _at(event.date, event.end_time)
            if end <= start:
                # "10:00 PM - 6:00 AM" ends the next morning
                end += timedelta(days=1)
            ve.add("dtend", end)
        else:
            ve.add("duration", DEFAULT_DURATION)
    else:
        ve.add("dtstart", event.date)
        ve.add("dtend", event.date + timedelta(days=1))

    ve.add("description", event.description or DEFAULT_DESCRIPTION)
    if event.location:
        ve.add("location", event.location)
    return ve


def build_ics(data: ParsedCalendarData, prodid: str = PRODID) -> str:
    cal = Calendar()
    cal.add("prodid", prodid)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")

    stamp = datetime.now(timezone.utc)
    for event in data.events:
        cal.add_component(_to_ical_event(event, stamp))
    return cal.to_ical().decode("utf-8")


def write_ics(data: ParsedCalendarData, output_path: str) -> str:
    content = build_ics(data)
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    logger.info(f"  Wrote {len(data.events)} events to {output_path}")
    return os.path.abspath(output_path)
