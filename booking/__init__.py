"""Calendar, slot and availability logic plus appointment booking."""

from .availability import AvailabilityResolver, day_is_available, overlaps, slot_is_available
from .calendar import calendar_days, upcoming_days, weekday_name
from .catalog import attach_services, search_providers, service_names
from .index import AppointmentIndex, appointments_by_date
from .slots import generate_slots
from .submitter import BookingFlow, BookingSubmitter

__all__ = [
    "AvailabilityResolver",
    "day_is_available",
    "overlaps",
    "slot_is_available",
    "calendar_days",
    "upcoming_days",
    "weekday_name",
    "attach_services",
    "search_providers",
    "service_names",
    "AppointmentIndex",
    "appointments_by_date",
    "generate_slots",
    "BookingFlow",
    "BookingSubmitter",
]
