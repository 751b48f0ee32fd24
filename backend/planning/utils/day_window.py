"""
A single day's working window for one kind of capacity.

The window opens at the effective start and holds ``max_minutes`` of working
time. When the lunch break starts inside the window, the clock end moves out
by the lunch duration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from planning.utils.time_utils import MINUTES_PER_DAY

# Remaining work below one minute counts as done
MIN_WORK_HOURS = 1 / 60
# Segments shorter than this would render with equal start and end times
MIN_SEGMENT_MINUTES = 0.5


@dataclass(frozen=True)
class Segment:
    """A contiguous slice of clock time."""

    start: float
    end: float

    @property
    def hours(self) -> float:
        return (self.end - self.start) / 60


@dataclass(frozen=True)
class DayWindow:
    start: int
    max_minutes: int
    lunch_start: int = 0
    lunch_duration: int = 0

    @classmethod
    def build(
        cls,
        start: int,
        max_hours: float,
        lunch_start: int = 0,
        lunch_duration: int = 0,
    ) -> "DayWindow":
        """Create a window, moving a start that falls inside lunch to lunch end."""
        lunch_duration = max(lunch_duration, 0)
        if lunch_duration and lunch_start <= start < lunch_start + lunch_duration:
            start = lunch_start + lunch_duration
        max_minutes = max(int(round(max_hours * 60)), 0)
        window = cls(start, max_minutes, lunch_start, lunch_duration)
        # Never run past midnight
        if window.end > MINUTES_PER_DAY:
            overflow = window.end - MINUTES_PER_DAY
            window = cls(start, max(max_minutes - overflow, 0), lunch_start, lunch_duration)
        return window

    @property
    def max_hours(self) -> float:
        return self.max_minutes / 60

    @property
    def is_working(self) -> bool:
        return self.max_minutes > 0

    @property
    def lunch_end(self) -> int:
        return self.lunch_start + self.lunch_duration

    @property
    def end(self) -> int:
        """Clock end of the window, including any lunch break inside it."""
        end = self.start + self.max_minutes
        if self.lunch_duration and self.start < self.lunch_start < end:
            end += self.lunch_duration
        return end

    def skip_lunch(self, minutes: float) -> float:
        """Move a clock time that falls inside the lunch break to lunch end."""
        if self.lunch_duration and self.lunch_start <= minutes < self.lunch_end:
            return self.lunch_end
        return minutes

    def working_minutes_between(self, start: float, end: float) -> float:
        """Minutes between two clock times, not counting lunch."""
        if end <= start:
            return 0.0
        total = end - start
        if self.lunch_duration:
            overlap = min(end, self.lunch_end) - max(start, self.lunch_start)
            if overlap > 0:
                total -= overlap
        return total

    def remaining_minutes(self, after: Optional[float] = None) -> float:
        """Working minutes left in the window from ``after`` (or the start)."""
        begin = self.start if after is None else max(self.start, after)
        begin = self.skip_lunch(begin)
        return self.working_minutes_between(begin, self.end)

    def place(self, start: float, hours: float) -> list[Segment]:
        """
        Lay ``hours`` of work from ``start``, splitting around lunch.

        The part before lunch ends exactly at lunch start and the rest begins
        exactly at lunch end. Pieces shorter than half a minute are dropped.
        """
        begin = self.skip_lunch(start)
        minutes = hours * 60
        if self.lunch_duration and begin < self.lunch_start < begin + minutes:
            before = self.lunch_start - begin
            segments = [
                Segment(begin, self.lunch_start),
                Segment(self.lunch_end, self.lunch_end + (minutes - before)),
            ]
        else:
            segments = [Segment(begin, begin + minutes)]
        return [item for item in segments if item.end - item.start >= MIN_SEGMENT_MINUTES]
