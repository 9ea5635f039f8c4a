"""
Appointment booking.

``BookingSubmitter`` turns a complete selection into exactly one
appointment write. ``BookingFlow`` holds a client's in-progress selection
and keeps it intact when a submit fails so the client can retry.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Optional, Set, Union

from pydantic import ValidationError as PydanticValidationError

from booking.availability import AvailabilityResolver
from config import settings
from models.appointment import (
    Appointment,
    AppointmentCreate,
    ContactInfo,
    ValidatedContact,
    clean_notes,
)
from models.calendar import CalendarDay
from models.provider import ProviderProfile
from models.service import Service
from models.user import Principal
from utils.datetime_utils import add_minutes, format_clock, local_now, parse_clock
from utils.exceptions import DatabaseError, SlotConflictError, ValidationError
from utils.logging_config import setup_logging
from utils.validation import missing_fields

logger = setup_logging(name=__name__, log_file="booking.log")

CONFLICT_MESSAGE = "This time is no longer available. Please choose another slot."
FAILURE_MESSAGE = "Could not complete your booking. Please try again."
INCOMPLETE_MESSAGE = "Please fill in all required fields."

SelectedDay = Union[CalendarDay, date]


def _appointment_date(selected_day: SelectedDay) -> date:
    """Calendar date of the selection; never derived from a timestamp."""
    if isinstance(selected_day, CalendarDay):
        return selected_day.date
    if isinstance(selected_day, datetime):
        return selected_day.date()
    return selected_day


class BookingSubmitter:
    """Validates a selection and creates the appointment."""

    def __init__(self, db: Any = None, capacity: Optional[int] = None):
        if db is None:
            from db import get_db_client

            db = get_db_client()
        self.db = db
        self.capacity = capacity or settings.max_appointments_per_day

    def validate(
        self,
        provider: Optional[ProviderProfile],
        service: Optional[Service],
        selected_day: Optional[SelectedDay],
        selected_time: Optional[Union[str, time]],
        contact: Optional[ContactInfo],
    ) -> ValidatedContact:
        """
        Check every precondition before anything is written.

        Raises:
            ValidationError: Naming the missing or invalid fields
        """
        contact = contact or ContactInfo()
        missing = missing_fields(
            {
                "provider": provider,
                "service": service,
                "date": selected_day,
                "time": selected_time,
                "name": contact.name,
                "email": contact.email,
                "phone": contact.phone,
            }
        )
        if missing:
            raise ValidationError(
                f"Missing required booking fields: {', '.join(missing)}", missing
            )

        if not isinstance(service.duration_minutes, int) or service.duration_minutes <= 0:
            raise ValidationError("Service duration must be a positive number of minutes", ["service"])
        try:
            parse_clock(selected_time)
        except ValueError as e:
            raise ValidationError(str(e), ["time"]) from e

        try:
            return ValidatedContact(name=contact.name, email=contact.email, phone=contact.phone)
        except PydanticValidationError as e:
            fields = [str(err["loc"][0]) for err in e.errors() if err.get("loc")]
            raise ValidationError(f"Invalid contact details: {', '.join(fields)}", fields) from e

    async def submit(
        self,
        provider: Optional[ProviderProfile],
        service: Optional[Service],
        selected_day: Optional[SelectedDay],
        selected_time: Optional[Union[str, time]],
        contact: Optional[ContactInfo],
        client_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """
        Create one pending appointment for the selection.

        The slot is re-checked against a fresh fetch of the day's
        appointments, then written through the store's conditional
        insert. Not idempotent: two calls create two appointments.

        Raises:
            ValidationError: If a precondition fails (nothing is written)
            SlotConflictError: If the slot is taken or no longer offered
            TransportError: If the store fails
        """
        valid_contact = self.validate(provider, service, selected_day, selected_time, contact)

        appointment_date = _appointment_date(selected_day)
        start_time = parse_clock(selected_time)
        end_time = add_minutes(start_time, service.duration_minutes)
        now = now or local_now(settings.timezone)

        on_day = await self.db.get_appointments_on_date(provider.id, appointment_date)
        resolver = AvailabilityResolver(
            provider.working_hours,
            on_day,
            capacity=self.capacity,
            locale=settings.weekday_locale,
        )
        day = resolver.day(appointment_date, now.date(), service)
        if not resolver.is_slot_available(day, start_time, service, now):
            logger.warning(
                f"Rejected booking for provider {provider.id}: "
                f"{appointment_date} {format_clock(start_time)} is not available"
            )
            raise SlotConflictError(
                f"Slot {appointment_date} {format_clock(start_time)} is no longer available"
            )

        appointment_data = AppointmentCreate(
            provider_id=provider.id,
            service_id=service.id,
            client_id=client_id,
            client_name=valid_contact.name,
            client_email=str(valid_contact.email),
            client_phone=valid_contact.phone,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=end_time,
            notes=clean_notes(notes),
        )
        return await self.db.create_appointment(appointment_data, max_per_day=self.capacity)


@dataclass
class BookingFlow:
    """
    A client's in-progress booking.

    Selections survive a failed submit; contact fields pre-filled from
    the signed-in principal cannot be edited.
    """

    provider: Optional[ProviderProfile] = None
    service: Optional[Service] = None
    selected_day: Optional[SelectedDay] = None
    selected_time: Optional[str] = None
    contact: ContactInfo = field(default_factory=ContactInfo)
    notes: Optional[str] = None
    client_id: Optional[str] = None
    locked_fields: Set[str] = field(default_factory=set)
    is_submitting: bool = False
    is_booked: bool = False
    appointment: Optional[Appointment] = None
    error_message: Optional[str] = None

    def select_service(self, service: Optional[Service]) -> None:
        """Choosing a different service resets date and time."""
        if self.service is None or service is None or service.id != self.service.id:
            self.selected_day = None
            self.selected_time = None
        self.service = service

    def select_day(self, day: SelectedDay) -> None:
        if self.service is None:
            raise ValidationError("Select a service before choosing a date", ["service"])
        if isinstance(day, CalendarDay) and not day.available:
            raise ValidationError(f"{day.iso_date} is not available", ["date"])
        self.selected_day = day
        self.selected_time = None

    def select_time(self, slot_time: Union[str, time]) -> None:
        if self.selected_day is None:
            raise ValidationError("Select a date before choosing a time", ["date"])
        self.selected_time = format_clock(slot_time)

    def prefill_from(self, principal: Principal) -> None:
        """Copy contact details from the signed-in principal and lock them."""
        self.client_id = principal.id
        values = {
            "name": principal.full_name or "",
            "email": principal.email or "",
            "phone": principal.phone or "",
        }
        self.contact = self.contact.model_copy(
            update={k: v for k, v in values.items() if v}
        )
        self.locked_fields = {k for k, v in values.items() if v}

    def set_contact(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> None:
        changes = {k: v for k, v in {"name": name, "email": email, "phone": phone}.items() if v is not None}
        locked = sorted(set(changes) & self.locked_fields)
        if locked:
            raise ValidationError(f"Pre-filled fields cannot be edited: {', '.join(locked)}", locked)
        self.contact = ContactInfo(**{**self.contact.model_dump(), **changes})

    @property
    def can_submit(self) -> bool:
        if self.is_submitting or self.is_booked:
            return False
        return not missing_fields(
            {
                "provider": self.provider,
                "service": self.service,
                "date": self.selected_day,
                "time": self.selected_time,
                "name": self.contact.name,
                "email": self.contact.email,
                "phone": self.contact.phone,
            }
        )

    async def submit(
        self, submitter: BookingSubmitter, now: Optional[datetime] = None
    ) -> Optional[Appointment]:
        """
        Submit once. Re-entry while a submit is in flight is ignored.

        Returns:
            The created appointment, or None when nothing was booked (the
            reason is left in ``error_message``)
        """
        if self.is_booked:
            return self.appointment
        if self.is_submitting:
            return None
        if not self.can_submit:
            self.error_message = INCOMPLETE_MESSAGE
            return None

        self.is_submitting = True
        self.error_message = None
        try:
            appointment = await submitter.submit(
                self.provider,
                self.service,
                self.selected_day,
                self.selected_time,
                self.contact,
                client_id=self.client_id,
                notes=self.notes,
                now=now,
            )
        except SlotConflictError as e:
            logger.info(f"Booking conflict: {e}")
            self.error_message = CONFLICT_MESSAGE
            return None
        except ValidationError as e:
            self.error_message = str(e)
            return None
        except DatabaseError as e:
            logger.error(f"Failed to create appointment: {e}", exc_info=True)
            self.error_message = FAILURE_MESSAGE
            return None
        finally:
            self.is_submitting = False

        self.appointment = appointment
        self.is_booked = True
        return appointment
