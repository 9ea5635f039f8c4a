"""Pydantic models for data validation and serialization."""

from .appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentServiceInfo,
    AppointmentStatus,
    ContactInfo,
)
from .calendar import CalendarDay, SlotAvailability
from .provider import (
    DayConfig,
    ProviderProfile,
    ProviderProfileUpdate,
    ProviderWithServices,
    WeeklyHours,
    default_working_hours,
)
from .service import Service, ServiceCreate
from .user import Principal, UserRole

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentServiceInfo",
    "AppointmentStatus",
    "ContactInfo",
    "CalendarDay",
    "SlotAvailability",
    "DayConfig",
    "ProviderProfile",
    "ProviderProfileUpdate",
    "ProviderWithServices",
    "WeeklyHours",
    "default_working_hours",
    "Service",
    "ServiceCreate",
    "Principal",
    "UserRole",
]
