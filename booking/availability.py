"""
Availability resolution.

Combines working hours, generated slots, existing appointments and an
explicit "now" to decide which days and start times can be booked.
Every function takes "now"/"today" as a parameter; nothing here reads
the wall clock.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from booking.calendar import build_day, calendar_days, upcoming_days
from booking.index import AppointmentIndex
from booking.slots import generate_slots
from config import settings
from models.appointment import Appointment
from models.calendar import CalendarDay, SlotAvailability
from models.provider import DayConfig, resolve_day_config
from models.service import Service
from utils.constants import (
    DEFAULT_LOCALE,
    DEFAULT_WINDOW_DAYS,
    MAX_APPOINTMENTS_PER_DAY,
    SUNDAY_FIRST,
)
from utils.datetime_utils import ClockLike, combine, format_clock, to_local_naive

logger = logging.getLogger(__name__)


def overlaps(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """Half-open interval overlap: touching intervals do not overlap."""
    return start < other_end and end > other_start


def appointment_interval(appointment: Appointment) -> tuple:
    """
    Start and end datetimes of an existing appointment.

    An end clock time at or before the start (a duration that wrapped
    past midnight) is read as ending on the next day.
    """
    start = combine(appointment.appointment_date, appointment.start_time)
    end = combine(appointment.appointment_date, appointment.end_time)
    if end <= start:
        end += timedelta(days=1)
    return start, end


def _service_duration(service: Any) -> Optional[int]:
    duration = getattr(service, "duration_minutes", None)
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        return None
    return duration


def day_is_available(
    day: Optional[CalendarDay],
    service_selected: Any,
    day_config: Optional[DayConfig],
    appointments_on_day: Sequence[Appointment],
    capacity: int = MAX_APPOINTMENTS_PER_DAY,
) -> bool:
    """
    Whether a calendar day can be picked.

    Past days, days without a selected service, closed or unconfigured
    days, and days that already hold ``capacity`` appointments (any
    status) are never available.
    """
    if day is None or day.is_past:
        return False
    if not service_selected:
        return False
    if day_config is None or not day_config.is_open:
        return False
    if len(appointments_on_day) >= capacity:
        return False
    return True


def slot_is_available(
    day: Optional[CalendarDay],
    slot_time: ClockLike,
    service: Optional[Service],
    appointments_on_day: Iterable[Appointment],
    now: datetime,
) -> bool:
    """
    Whether one start time on an available day can be booked.

    A slot at or before ``now`` is not offerable. A slot is blocked by any
    overlapping appointment on the day unless that appointment is
    cancelled; pending bookings hold their slot.
    """
    duration = _service_duration(service)
    if day is None or duration is None:
        return False

    now = to_local_naive(now, settings.timezone)
    slot_start = combine(day.date, slot_time)
    slot_end = slot_start + timedelta(minutes=duration)

    if slot_start <= now:
        return False

    for appointment in appointments_on_day:
        if appointment.is_cancelled:
            continue
        existing_start, existing_end = appointment_interval(appointment)
        if overlaps(slot_start, slot_end, existing_start, existing_end):
            return False

    return True


class AvailabilityResolver:
    """
    Day and slot availability for one provider.

    Built from the provider's weekly hours and the full current list of
    their appointments; call ``refresh`` after every re-fetch.
    """

    def __init__(
        self,
        weekly_hours: Optional[Mapping[str, Any]],
        appointments: Iterable[Appointment] = (),
        capacity: int = MAX_APPOINTMENTS_PER_DAY,
        locale: str = DEFAULT_LOCALE,
        first_weekday: int = SUNDAY_FIRST,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        if capacity < 1:
            raise ValueError(f"Daily capacity must be >= 1, got {capacity}")
        self.weekly_hours = weekly_hours or {}
        self.capacity = capacity
        self.locale = locale
        self.first_weekday = first_weekday
        self.window_days = window_days
        self.index = AppointmentIndex(appointments)

    @classmethod
    def from_settings(
        cls, weekly_hours: Optional[Mapping[str, Any]], appointments: Iterable[Appointment] = ()
    ) -> "AvailabilityResolver":
        """Resolver using the configured capacity, locale and calendar layout."""
        return cls(
            weekly_hours,
            appointments,
            capacity=settings.max_appointments_per_day,
            locale=settings.weekday_locale,
            first_weekday=settings.calendar_first_weekday,
            window_days=settings.booking_window_days,
        )

    def refresh(self, appointments: Iterable[Appointment]) -> None:
        """Rebuild the appointment index from a freshly fetched list."""
        self.index = AppointmentIndex(appointments)

    def day_config(self, day: CalendarDay) -> Optional[DayConfig]:
        return resolve_day_config(self.weekly_hours, day.weekday_name)

    def is_day_available(self, day: Optional[CalendarDay], service: Optional[Service]) -> bool:
        if day is None:
            return False
        return day_is_available(
            day,
            _service_duration(service) is not None,
            self.day_config(day),
            self.index.on(day.date),
            self.capacity,
        )

    def _refine(self, day: CalendarDay, service: Optional[Service]) -> CalendarDay:
        return day.model_copy(update={"available": self.is_day_available(day, service)})

    def day(self, target: date, today: date, service: Optional[Service]) -> CalendarDay:
        """Single day descriptor with resolved availability."""
        return self._refine(build_day(target, self.weekly_hours, today, self.locale), service)

    def days(
        self, month_anchor: date, today: date, service: Optional[Service]
    ) -> List[Optional[CalendarDay]]:
        """Month grid (None placeholders kept) with resolved availability."""
        cells = calendar_days(
            self.weekly_hours, month_anchor, today, self.locale, self.first_weekday
        )
        return [None if cell is None else self._refine(cell, service) for cell in cells]

    def window(
        self, today: date, service: Optional[Service], days: Optional[int] = None
    ) -> List[CalendarDay]:
        """Rolling strip of days starting today with resolved availability."""
        if days is None:
            days = self.window_days
        return [
            self._refine(day, service)
            for day in upcoming_days(self.weekly_hours, today, days, self.locale)
        ]

    def slots(
        self, day: Optional[CalendarDay], service: Optional[Service], now: datetime
    ) -> List[SlotAvailability]:
        """
        Every generated start time for the day, in chronological order,
        flagged with whether it can be booked.

        Empty when no service is selected or the day itself is not
        available.
        """
        duration = _service_duration(service)
        if day is None or duration is None or not self.is_day_available(day, service):
            return []

        now = to_local_naive(now, settings.timezone)
        config = self.day_config(day)
        on_day = self.index.on(day.date)
        return [
            SlotAvailability(
                time=format_clock(slot),
                available=slot_is_available(day, slot, service, on_day, now),
            )
            for slot in generate_slots(config.open, config.close, duration)
        ]

    def available_times(
        self, day: Optional[CalendarDay], service: Optional[Service], now: datetime
    ) -> List[str]:
        """Bookable start times as 'HH:MM' strings."""
        return [slot.time for slot in self.slots(day, service, now) if slot.available]

    def is_slot_available(
        self,
        day: Optional[CalendarDay],
        slot_time: ClockLike,
        service: Optional[Service],
        now: datetime,
    ) -> bool:
        """
        Whether a specific start time is offered and free.

        The time must be one the slot generator emits for the day.
        """
        wanted = format_clock(slot_time)
        if not any(
            slot.time == wanted and slot.available
            for slot in self.slots(day, service, now)
        ):
            logger.debug(f"Slot {slot_time} on {day.iso_date if day else None} is not available")
            return False
        return True
