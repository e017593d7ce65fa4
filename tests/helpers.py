"""Builders for canned OCR fragments and synthetic calendar images."""

import calendar
from datetime import date

import numpy as np

from calendar_extractor.models import PixelBuffer, RecognizedFragment, Region

CELL_WIDTH = 200
CELL_HEIGHT = 100
GRID_TOP = 150


def fragment(text: str, x: int, y: int, size: int = 50) -> RecognizedFragment:
    return RecognizedFragment(text=text, region=Region(x=x, y=y, width=size, height=size), confidence=90.0)


def month_grid(year: int, month: int) -> list[list[date]]:
    """Sunday-first weeks of a month view, including neighbouring-month days."""
    return calendar.Calendar(firstweekday=6).monthdatescalendar(year, month)


def grid_fragments(year: int, month: int, titles: dict[date, str] | None = None,
                   title_all: str | None = None) -> list[RecognizedFragment]:
    """
    One fragment per cell of the month view. Cells get "<day> <title>" when a
    title is given for that date (or `title_all` is set), a bare day otherwise.
    """
    titles = titles or {}
    fragments = []
    for row, week in enumerate(month_grid(year, month)):
        for col, day in enumerate(week):
            title = titles.get(day, title_all)
            text = f"{day.day} {title}" if title else str(day.day)
            fragments.append(fragment(text, col * CELL_WIDTH, GRID_TOP + row * CELL_HEIGHT))
    return fragments


def blank_buffer(width: int, height: int, color=(255, 255, 255)) -> np.ndarray:
    """RGBA image array filled with one colour."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = color
    pixels[:, :, 3] = 255
    return pixels


def paint(pixels: np.ndarray, x: int, y: int, width: int, height: int, color=(220, 20, 20)) -> None:
    pixels[y:y + height, x:x + width, :3] = color


def to_buffer(pixels: np.ndarray) -> PixelBuffer:
    h, w = pixels.shape[:2]
    return PixelBuffer(width=w, height=h, data=pixels.reshape(-1))
