"""Appointment models."""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from utils.constants import MAX_CONTACT_FIELD_LENGTH, MAX_NOTES_LENGTH
from utils.datetime_utils import parse_clock, parse_iso_date
from utils.validation import sanitize_text, validate_phone


class AppointmentStatus(str, Enum):
    """Appointment status. Any status may change to any other."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Statuses that close an appointment regardless of its time
FINAL_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
)
# Statuses shown in the provider's upcoming list
ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


class AppointmentServiceInfo(BaseModel):
    """Service fields expanded onto an appointment row."""

    name: str
    duration_minutes: Optional[int] = None


class _AppointmentTimes(BaseModel):
    """Shared parsing for the date/time columns."""

    appointment_date: date
    start_time: time
    end_time: time

    @field_validator("appointment_date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> date:
        return parse_iso_date(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> time:
        return parse_clock(v)


class Appointment(_AppointmentTimes):
    """Appointment record."""

    id: Optional[str] = None
    provider_id: str
    service_id: str
    client_id: Optional[str] = None
    client_name: str
    client_email: str
    client_phone: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    service: Optional[AppointmentServiceInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "provider_id": "uuid-here",
                "service_id": "uuid-here",
                "client_name": "Maria Silva",
                "client_email": "maria@example.com",
                "client_phone": "+5511987654321",
                "appointment_date": "2024-01-01",
                "start_time": "09:30",
                "end_time": "10:15",
                "status": "pending",
            }
        },
    )

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED


class AppointmentCreate(_AppointmentTimes):
    """Appointment creation model."""

    provider_id: str
    service_id: str
    client_id: Optional[str] = None
    client_name: str
    client_email: str
    client_phone: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class ContactInfo(BaseModel):
    """Client contact fields collected by the booking form."""

    name: str = ""
    email: str = ""
    phone: str = ""

    @field_validator("name", "email", "phone", mode="before")
    @classmethod
    def clean(cls, v: Any) -> str:
        return sanitize_text(v or "", MAX_CONTACT_FIELD_LENGTH)


class ValidatedContact(BaseModel):
    """Contact fields after the submit-time format checks."""

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: str) -> str:
        if not validate_phone(v):
            raise ValueError("Invalid phone number")
        return v


def clean_notes(notes: Optional[str]) -> Optional[str]:
    """Trim optional notes; blank notes are stored as null."""
    return sanitize_text(notes or "", MAX_NOTES_LENGTH) or None
