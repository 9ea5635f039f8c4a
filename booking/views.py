"""
Dashboard groupings of appointments.

Provider and client dashboards slice the same appointment lists by time
and status. Like the availability code, these take ``now``/``today``
explicitly.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Tuple

from booking.availability import appointment_interval
from config import settings
from models.appointment import ACTIVE_STATUSES, FINAL_STATUSES, Appointment
from utils.constants import STATUS_LABELS, TODAY_LABEL, TWO_DAYS_AGO_LABEL, YESTERDAY_LABEL
from utils.datetime_utils import to_local_naive

_ACTIVE = {status.value for status in ACTIVE_STATUSES}
_FINAL = {status.value for status in FINAL_STATUSES}


def _naive(now: datetime) -> datetime:
    return to_local_naive(now, settings.timezone)


def _starts_at(appointment: Appointment) -> datetime:
    return appointment_interval(appointment)[0]


def status_label(status: str) -> str:
    """Display label for a status; unknown values are shown as-is."""
    value = getattr(status, "value", status)
    return STATUS_LABELS.get(value, value)


def upcoming_for_provider(appointments: Iterable[Appointment], now: datetime) -> List[Appointment]:
    """Pending or confirmed appointments starting after ``now``, soonest first."""
    now = _naive(now)
    upcoming = [
        a for a in appointments
        if a.status in _ACTIVE and _starts_at(a) > now
    ]
    return sorted(upcoming, key=_starts_at)


def provider_history(appointments: Iterable[Appointment], now: datetime) -> List[Appointment]:
    """Appointments that have ended or reached a final status, newest first."""
    now = _naive(now)
    history = [
        a for a in appointments
        if a.status in _FINAL or appointment_interval(a)[1] < now
    ]
    return sorted(history, key=_starts_at, reverse=True)


def history_label(day: date, today: date) -> str:
    delta = (today - day).days
    if delta == 0:
        return TODAY_LABEL
    if delta == 1:
        return YESTERDAY_LABEL
    if delta == 2:
        return TWO_DAYS_AGO_LABEL
    return day.strftime("%d/%m/%Y")


def group_history_by_day(
    appointments: Iterable[Appointment], today: date
) -> List[Tuple[str, List[Appointment]]]:
    """
    Group an already-ordered history list into (label, appointments) pairs.

    Group order follows the first appearance of each date.
    """
    groups: Dict[date, List[Appointment]] = {}
    for appointment in appointments:
        groups.setdefault(appointment.appointment_date, []).append(appointment)
    return [(history_label(day, today), items) for day, items in groups.items()]


def split_client_appointments(
    appointments: Iterable[Appointment], today: date
) -> Tuple[List[Appointment], List[Appointment]]:
    """
    Split a client's appointments into (upcoming, past) by date.

    Today counts as upcoming. Upcoming is soonest first, past is most
    recent first.
    """
    upcoming: List[Appointment] = []
    past: List[Appointment] = []
    for appointment in appointments:
        (upcoming if appointment.appointment_date >= today else past).append(appointment)
    upcoming.sort(key=_starts_at)
    past.sort(key=_starts_at, reverse=True)
    return upcoming, past


def todays_appointments(appointments: Iterable[Appointment], today: date) -> List[Appointment]:
    return sorted(
        (a for a in appointments if a.appointment_date == today),
        key=lambda a: a.start_time,
    )


def notification_count(appointments: Iterable[Appointment], now: datetime) -> int:
    """Number of today's appointments that have not started yet."""
    now = _naive(now)
    today = now.date()
    return sum(
        1 for a in appointments
        if a.appointment_date == today and _starts_at(a) > now
    )
