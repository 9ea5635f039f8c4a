"""Derived calendar models. Recomputed on every request, never stored."""

import datetime as dt

from pydantic import BaseModel


class CalendarDay(BaseModel):
    """One in-month day of the booking calendar."""

    date: dt.date
    iso_date: str
    weekday_name: str
    is_today: bool = False
    is_past: bool = False
    available: bool = False

    @property
    def day_number(self) -> int:
        return self.date.day


class SlotAvailability(BaseModel):
    """A candidate start time and whether it can be booked."""

    time: str
    available: bool
