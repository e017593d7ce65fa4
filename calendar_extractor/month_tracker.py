"""
Month Tracker — Decides which month a day number belongs to.

A wall calendar fills its first and last rows with days of the neighbouring
months, so a lone "1" can be the first of the previous, requested or next
month. The tracker reads day numbers in row-major order and resolves each one
from its row and the day that came before it.

The rules are ordered; the first one that matches wins. Reordering them changes
the result on ambiguous input.
"""

import logging
from dataclasses import dataclass

from .models import MonthContext

logger = logging.getLogger(__name__)

PREVIOUS_OVERFLOW_MIN_DAY = 25
MONTH_END_MIN_DAY = 28
NEXT_OVERFLOW_MAX_DAY = 5
LATE_OVERFLOW_MAX_DAY = 10
TAIL_MIN_DAY = 24
TAIL_MIN_WEEK = 3
LATE_WEEK = 4


@dataclass
class TrackerState:
    last_day: int = 0
    current_week: int = -1
    entered_current: bool = False
    transitioned_to_current: bool = False
    in_next: bool = False
    seen_tail: bool = False


class MonthTracker:
    def __init__(self, days_in_month: int):
        self.days_in_month = days_in_month
        self.state = TrackerState()

    def reset(self) -> None:
        self.state = TrackerState()

    def classify(self, day: int, week_index: int) -> MonthContext:
        """Resolve the month of `day` seen in row `week_index`, then remember it."""
        context = self._transition(day, week_index)
        self.state.last_day = day
        logger.debug(f"    day {day:2d} week {week_index} -> {context.value}")
        return context

    def _enter_current(self) -> None:
        self.state.entered_current = True
        self.state.transitioned_to_current = True

    def _enter_next(self) -> MonthContext:
        self.state.in_next = True
        return MonthContext.NEXT

    def _transition(self, day: int, week: int) -> MonthContext:
        s = self.state
        last = s.last_day
        new_week = week != s.current_week
        s.current_week = week
        sequential = day == last + 1 or (last == 0 and day == 1)

        # Leading days of the previous month in the first row
        if week == 0 and day >= PREVIOUS_OVERFLOW_MIN_DAY and last == 0 and not s.entered_current:
            return MonthContext.PREVIOUS

        # First-row rollover from the previous month into day 1
        if week == 0 and last >= MONTH_END_MIN_DAY and day <= NEXT_OVERFLOW_MAX_DAY \
                and not s.transitioned_to_current:
            self._enter_current()
            return MonthContext.CURRENT

        # Trailing rows: rollover from the month end into the next month
        if week >= TAIL_MIN_WEEK and last >= PREVIOUS_OVERFLOW_MIN_DAY and day <= NEXT_OVERFLOW_MAX_DAY:
            return self._enter_next()
        if week >= LATE_WEEK and day <= LATE_OVERFLOW_MAX_DAY and s.seen_tail:
            return self._enter_next()
        if week >= LATE_WEEK and day <= NEXT_OVERFLOW_MAX_DAY and last == 0:
            return self._enter_next()
        if week >= LATE_WEEK and day > self.days_in_month:
            return self._enter_next()

        # A new late row opening on a high day is still the requested month
        if new_week and week >= TAIL_MIN_WEEK and day >= PREVIOUS_OVERFLOW_MIN_DAY and s.entered_current:
            s.transitioned_to_current = True
            s.seen_tail = True
            return MonthContext.CURRENT

        # A run of high days in the first row continues the previous month
        if week == 0 and day == last + 1 and day >= PREVIOUS_OVERFLOW_MIN_DAY:
            return MonthContext.PREVIOUS

        if sequential:
            if s.in_next:
                return MonthContext.NEXT
            if week > 0 and not s.entered_current:
                self._enter_current()
            if day >= TAIL_MIN_DAY and week >= TAIL_MIN_WEEK:
                s.seen_tail = True
            return MonthContext.CURRENT

        # A jump into mid-month values can only be the requested month
        if not s.entered_current and NEXT_OVERFLOW_MAX_DAY < day < PREVIOUS_OVERFLOW_MIN_DAY:
            self._enter_current()
            return MonthContext.CURRENT

        return MonthContext.CURRENT
