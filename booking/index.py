"""Grouping of a provider's appointments by calendar date."""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Union

from models.appointment import Appointment
from utils.datetime_utils import to_iso_date


def appointments_by_date(appointments: Iterable[Appointment]) -> Dict[str, List[Appointment]]:
    """Map 'YYYY-MM-DD' to that day's appointments, in insertion order."""
    grouped: Dict[str, List[Appointment]] = defaultdict(list)
    for appointment in appointments:
        grouped[to_iso_date(appointment.appointment_date)].append(appointment)
    return dict(grouped)


class AppointmentIndex:
    """
    Per-date lookup over a full appointment list.

    Rebuilt from scratch whenever the list is re-fetched; there is no
    incremental maintenance.
    """

    def __init__(self, appointments: Iterable[Appointment] = ()):
        self._by_date = appointments_by_date(appointments)

    def on(self, day: Union[date, str]) -> List[Appointment]:
        """Appointments on a date (empty list when none)."""
        key = day if isinstance(day, str) else to_iso_date(day)
        return list(self._by_date.get(key, []))

    def count_on(self, day: Union[date, str]) -> int:
        key = day if isinstance(day, str) else to_iso_date(day)
        return len(self._by_date.get(key, []))

    def dates(self) -> List[str]:
        return list(self._by_date)

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_date.values())
