"""
Working-hours calendar.

Maps a provider's weekly open/close configuration onto calendar days:
a month grid for the date picker and a rolling N-day strip.
"""

import calendar
from datetime import date, timedelta
from typing import Any, List, Mapping, Optional

from models.calendar import CalendarDay
from models.provider import resolve_day_config, weekday_keys
from utils.constants import DEFAULT_LOCALE, DEFAULT_WINDOW_DAYS, SUNDAY_FIRST
from utils.datetime_utils import to_iso_date


def weekday_name(day: date, locale: str = DEFAULT_LOCALE) -> str:
    """Weekday key for a date, e.g. 'Segunda' for a Monday in pt-BR."""
    return weekday_keys(locale)[day.weekday()]


def build_day(
    day: date,
    weekly_hours: Optional[Mapping[str, Any]],
    today: date,
    locale: str = DEFAULT_LOCALE,
) -> CalendarDay:
    """
    Describe one calendar day.

    ``available`` here only reflects working hours and past-ness; the
    availability resolver narrows it further by service and capacity.
    """
    name = weekday_name(day, locale)
    config = resolve_day_config(weekly_hours, name)
    is_past = day < today
    return CalendarDay(
        date=day,
        iso_date=to_iso_date(day),
        weekday_name=name,
        is_today=day == today,
        is_past=is_past,
        available=not is_past and config is not None and config.is_open,
    )


def calendar_days(
    weekly_hours: Optional[Mapping[str, Any]],
    month_anchor: date,
    today: date,
    locale: str = DEFAULT_LOCALE,
    first_weekday: int = SUNDAY_FIRST,
) -> List[Optional[CalendarDay]]:
    """
    Lay out the anchor's month as a 7-column grid.

    Cells outside the month are None placeholders, so the result length
    is always a multiple of 7.
    """
    grid = calendar.Calendar(firstweekday=first_weekday)
    cells: List[Optional[CalendarDay]] = []
    for week in grid.monthdatescalendar(month_anchor.year, month_anchor.month):
        for day in week:
            if day.month != month_anchor.month:
                cells.append(None)
            else:
                cells.append(build_day(day, weekly_hours, today, locale))
    return cells


def upcoming_days(
    weekly_hours: Optional[Mapping[str, Any]],
    today: date,
    days: int = DEFAULT_WINDOW_DAYS,
    locale: str = DEFAULT_LOCALE,
) -> List[CalendarDay]:
    """Rolling strip of ``days`` consecutive days starting today."""
    return [
        build_day(today + timedelta(days=offset), weekly_hours, today, locale)
        for offset in range(max(days, 0))
    ]


def month_days(cells: List[Optional[CalendarDay]]) -> List[CalendarDay]:
    """In-month days of a grid, placeholders dropped."""
    return [cell for cell in cells if cell is not None]
