"""
Data models used across the calendar extraction pipeline.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional
import numpy as np


@dataclass(frozen=True)
class Region:
    """A rectangular region within an image, defined by pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def crop_from(self, frame: np.ndarray) -> np.ndarray:
        """Crop this region from a frame (numpy array in BGR/RGB format)."""
        return frame[self.y:self.y2, self.x:self.x2]


@dataclass
class PixelBuffer:
    """Raw RGBA samples of an image, stored as a flat array."""
    width: int
    height: int
    data: np.ndarray

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=np.uint8).reshape(-1)
        if self.data.size != self.width * self.height * 4:
            raise ValueError(
                f"Pixel buffer has {self.data.size} samples, "
                f"expected {self.width * self.height * 4} for {self.width}x{self.height} RGBA")

    def channels(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return the R, G and B planes as signed (height, width) arrays."""
        pixels = self.data.reshape(self.height, self.width, 4)
        # int32 so predicates doing arithmetic (r - g) cannot wrap around
        return tuple(pixels[:, :, i].astype(np.int32) for i in range(3))


@dataclass
class Recognition:
    """Raw output of a text recognition call on one region."""
    text: str = ""
    confidence: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class RecognizedFragment:
    """Recognized text anchored to the region it was read from."""
    text: str
    region: Region
    confidence: float = 0.0


class MonthContext(str, Enum):
    PREVIOUS = "previous"
    CURRENT = "current"
    NEXT = "next"

    @property
    def offset(self) -> int:
        return {"previous": -1, "current": 0, "next": 1}[self.value]


class CalendarMode(str, Enum):
    STANDARD = "standard"
    SHIFT_TRACKING = "shift_tracking"


@dataclass
class CalendarEvent:
    """A single dated event reconstructed from the calendar image."""
    id: str
    title: str
    date: date
    start_time: Optional[str] = None  # "HH:MM", 24-hour
    end_time: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None


@dataclass
class ParsedCalendarData:
    """Events reconstructed for a requested (year, month)."""
    year: int
    month: int
    events: list[CalendarEvent] = field(default_factory=list)

    @property
    def event_count(self) -> int:
        return len(self.events)
