from datetime import date

from calendar_extractor.ics_builder import build_ics, write_ics
from calendar_extractor.models import CalendarEvent, ParsedCalendarData


def _data(*events):
    return ParsedCalendarData(year=2024, month=2, events=list(events))


def _unfold(content):
    return content.replace("\r\n ", "").split("\r\n")


def test_empty_calendar():
    content = build_ics(_data())
    lines = _unfold(content)
    assert lines[0] == "BEGIN:VCALENDAR"
    assert "VERSION:2.0" in lines
    assert lines[-2] == "END:VCALENDAR"
    assert "BEGIN:VEVENT" not in lines
    assert content.endswith("\r\n")


def test_all_day_event():
    event = CalendarEvent(id="event-1", title="Dentist", date=date(2024, 2, 29))
    lines = _unfold(build_ics(_data(event)))
    assert "UID:event-1" in lines
    assert "DTSTART;VALUE=DATE:20240229" in lines
    assert "DTEND;VALUE=DATE:20240301" in lines
    assert "SUMMARY:Dentist" in lines
    assert "DESCRIPTION:Extracted from calendar image" in lines


def test_timed_event_without_end_lasts_an_hour():
    event = CalendarEvent(id="event-2", title="Standup", date=date(2024, 2, 5), start_time="09:00")
    lines = _unfold(build_ics(_data(event)))
    assert "DTSTART:20240205T090000" in lines
    assert "DURATION:PT1H" in lines
    assert not any(line.startswith("DTEND") for line in lines)


def test_timed_event_with_end():
    event = CalendarEvent(id="event-3", title="Meeting", date=date(2024, 2, 5),
                          start_time="09:00", end_time="10:30")
    lines = _unfold(build_ics(_data(event)))
    assert "DTSTART:20240205T090000" in lines
    assert "DTEND:20240205T103000" in lines


def test_overnight_shift_ends_next_day():
    event = CalendarEvent(id="event-4", title="Night", date=date(2024, 12, 31),
                          start_time="22:00", end_time="06:00")
    lines = _unfold(build_ics(_data(event)))
    assert "DTEND:20250101T060000" in lines


def test_text_is_escaped():
    event = CalendarEvent(id="event-5", title="Lunch; Bob, Ann", date=date(2024, 2, 5),
                          location="Cafe\nMain St")
    lines = _unfold(build_ics(_data(event)))
    assert "SUMMARY:Lunch\\; Bob\\, Ann" in lines
    assert "LOCATION:Cafe\\nMain St" in lines


def test_long_lines_are_folded():
    event = CalendarEvent(id="event-6", title="x" * 200, date=date(2024, 2, 5))
    content = build_ics(_data(event))
    for line in content.split("\r\n"):
        assert len(line.encode("utf-8")) <= 75
    assert "SUMMARY:" + "x" * 200 in _unfold(content)


def test_write_ics(tmp_path):
    event = CalendarEvent(id="event-7", title="Gym", date=date(2024, 2, 5))
    path = write_ics(_data(event), str(tmp_path / "out" / "events.ics"))
    with open(path, encoding="utf-8", newline="") as f:
        content = f.read()
    assert "SUMMARY:Gym\r\n" in content
