"""
Supabase data-store client for providers, services and appointments.
Also reads the current-session principal from Supabase auth.

Tables:
    profiles           user_id, full_name, email
    user_roles         user_id, role ('provider' | 'client')
    provider_profiles  id, user_id, business_name, ..., working_hours (jsonb)
    services           id, provider_id, name, description, duration_minutes,
                       price, active
    appointments       id, provider_id, service_id, client_id, client_name,
                       client_email, client_phone, appointment_date,
                       start_time, end_time, status, notes

Writes of new appointments go through the ``book_appointment`` Postgres
function (db/sql/book_appointment.sql): it inserts only when no
non-cancelled appointment of the same provider overlaps the requested
interval on that date, and raises SQLSTATE 23P01 otherwise.

Row Level Security (RLS) Notes:
==============================
1. provider_profiles are readable by everyone, writable by their user_id
2. services are readable by everyone, writable by the owning provider
3. appointments are readable by their provider and by their client_id
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.provider import (
    ProviderProfile,
    ProviderProfileUpdate,
    default_working_hours,
    validate_weekly_hours,
    weekly_hours_to_store,
)
from models.service import Service, ServiceCreate
from models.user import Principal, UserRole
from utils.constants import PROVIDER_CACHE_TTL_MINUTES
from utils.datetime_utils import parse_iso_datetime, to_iso_date, to_iso_string, utc_now
from utils.exceptions import (
    AppointmentCreationError,
    AuthorizationError,
    AppointmentNotFoundError,
    ProviderNotFoundError,
    SlotConflictError,
    TransportError,
)
from utils.logging_config import setup_logging

logger = setup_logging(name=__name__, log_file="booking.log")

# Expands the service's name and duration onto each appointment row
APPOINTMENT_SELECT = "*, service:services(name, duration_minutes)"

# SQLSTATE raised by book_appointment when the slot is taken
SLOT_CONFLICT_CODE = "23P01"


class SupabaseClient:
    """
    Supabase database client wrapper.

    Appointments are never cached: availability is always computed from a
    fresh fetch. Provider profiles are cached briefly by id.
    """

    def __init__(self):
        self.client: SupabaseClientType = create_client(
            settings.supabase_url, settings.supabase_key
        )

        # Format: {cache_key: (data, expiry_time)}
        self._cache: Dict[str, Tuple[Any, datetime]] = {}
        self._cache_ttl = timedelta(minutes=PROVIDER_CACHE_TTL_MINUTES)

    # ========== Cache Helpers ==========

    def _get_from_cache(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        data, expiry = self._cache[key]
        if utc_now() > expiry:
            del self._cache[key]
            return None

        return data

    def _set_cache(self, key: str, value: Any) -> None:
        """Set value in cache with TTL."""
        self._cache[key] = (value, utc_now() + self._cache_ttl)

    def _clear_cache(self, pattern: Optional[str] = None) -> None:
        """Clear cache entries matching pattern, or all if pattern is None."""
        if pattern is None:
            self._cache.clear()
        else:
            for k in [k for k in self._cache if pattern in k]:
                del self._cache[k]

    # ========== Identity ==========

    async def get_current_principal(self) -> Optional[Principal]:
        """Principal of the current auth session, or None when signed out."""
        try:
            response = self.client.auth.get_user()
        except Exception as e:
            raise TransportError(f"Failed to get current user: {e}") from e

        user = getattr(response, "user", None) if response else None
        if user is None:
            return None

        role = await self.get_user_role(user.id)
        profile = await self.get_user_profile(user.id)
        return Principal(
            id=user.id,
            email=getattr(user, "email", None),
            role=role,
            full_name=(profile or {}).get("full_name"),
            phone=(profile or {}).get("phone"),
        )

    async def get_user_role(self, user_id: str) -> Optional[UserRole]:
        """Role tag for a user, None when unassigned."""
        try:
            response = (
                self.client.table("user_roles")
                .select("role")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get user role: {e}") from e

        if not response.data:
            return None
        try:
            return UserRole(response.data[0]["role"])
        except ValueError:
            logger.warning(f"Unknown role {response.data[0]['role']!r} for user {user_id}")
            return None

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Raw profiles row for a user."""
        try:
            response = (
                self.client.table("profiles")
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get profile: {e}") from e
        return response.data[0] if response.data else None

    async def register_user(
        self, principal: Principal, full_name: str
    ) -> Optional[ProviderProfile]:
        """
        Create the profile and role rows for a newly signed-up user.

        Providers also get a provider profile named after them, with the
        default working hours.

        Returns:
            The created provider profile, or None for clients
        """
        if principal.role is None:
            raise AuthorizationError("A role is required to register")

        try:
            self.client.table("profiles").insert(
                {"user_id": principal.id, "full_name": full_name, "email": principal.email}
            ).execute()
            self.client.table("user_roles").insert(
                {"user_id": principal.id, "role": UserRole(principal.role).value}
            ).execute()

            if not principal.is_provider:
                return None

            response = (
                self.client.table("provider_profiles")
                .insert(
                    {
                        "user_id": principal.id,
                        "business_name": full_name,
                        "working_hours": weekly_hours_to_store(
                            default_working_hours(settings.weekday_locale)
                        ),
                    }
                )
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to register user: {e}") from e

        if not response.data:
            raise TransportError("Failed to register user: no provider profile returned")
        logger.info(f"Registered provider profile for user {principal.id}")
        return self._parse_provider(response.data[0])

    # ========== Provider Operations ==========

    async def get_provider_by_id(self, provider_id: str) -> Optional[ProviderProfile]:
        """Get provider profile by ID (cached)."""
        cache_key = f"provider:id:{provider_id}"

        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table("provider_profiles")
                .select("*")
                .eq("id", provider_id)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get provider: {e}") from e

        if not response.data:
            return None
        provider = self._parse_provider(response.data[0])
        self._set_cache(cache_key, provider)
        return provider

    async def get_provider_by_user_id(self, user_id: str) -> Optional[ProviderProfile]:
        """Get the provider profile owned by a user."""
        try:
            response = (
                self.client.table("provider_profiles")
                .select("*")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get provider: {e}") from e

        if not response.data:
            return None
        return self._parse_provider(response.data[0])

    async def get_all_providers(self) -> List[ProviderProfile]:
        """Get all provider profiles."""
        try:
            response = self.client.table("provider_profiles").select("*").execute()
        except Exception as e:
            raise TransportError(f"Failed to get providers: {e}") from e

        return [self._parse_provider(item) for item in response.data]

    async def update_provider_profile(
        self, principal: Principal, update: ProviderProfileUpdate
    ) -> ProviderProfile:
        """
        Save the principal's own provider profile.

        Working hours are validated strictly before anything is written.

        Raises:
            AuthorizationError: If the principal is not a provider
            ProviderNotFoundError: If the principal has no provider profile
            ConfigurationError: If the working hours are malformed
        """
        if not principal.is_provider:
            raise AuthorizationError("Only providers can edit a provider profile")

        existing = await self.get_provider_by_user_id(principal.id)
        if existing is None:
            raise ProviderNotFoundError(f"No provider profile for user {principal.id}")

        data = update.model_dump(exclude_none=True)
        if "neighborhood" in data:
            data["neighboorhod"] = data.pop("neighborhood")
        if update.working_hours is not None:
            validated = validate_weekly_hours(update.working_hours, settings.weekday_locale)
            data["working_hours"] = weekly_hours_to_store(validated)

        data["user_id"] = principal.id
        data["business_name"] = data.get("business_name", existing.business_name)
        data["updated_at"] = to_iso_string(utc_now())

        try:
            response = (
                self.client.table("provider_profiles")
                .upsert(data, on_conflict="user_id")
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to update provider profile: {e}") from e

        if not response.data:
            raise TransportError("Failed to update provider profile: no data returned")

        self._clear_cache(f"provider:id:{existing.id}")
        logger.info(f"Provider profile {existing.id} updated")
        return self._parse_provider(response.data[0])

    # ========== Service Operations ==========

    async def get_services(self, provider_id: str, active_only: bool = True) -> List[Service]:
        """Get a provider's services."""
        try:
            query = self.client.table("services").select("*").eq("provider_id", provider_id)
            if active_only:
                query = query.eq("active", True)
            response = query.execute()
        except Exception as e:
            raise TransportError(f"Failed to get services: {e}") from e

        return [Service(**item) for item in response.data]

    async def get_active_services(self) -> List[Service]:
        """Get every active service across providers."""
        try:
            response = (
                self.client.table("services").select("*").eq("active", True).execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get services: {e}") from e

        return [Service(**item) for item in response.data]

    async def create_service(self, provider_id: str, service_data: ServiceCreate) -> Service:
        """Add a service to a provider's catalog."""
        data = service_data.model_dump(mode="json")
        data["provider_id"] = provider_id

        try:
            response = self.client.table("services").insert(data).execute()
        except Exception as e:
            raise TransportError(f"Failed to create service: {e}") from e

        if not response.data:
            raise TransportError("Failed to create service: no data returned")
        return Service(**response.data[0])

    # ========== Appointment Operations ==========

    async def get_provider_appointments(
        self, provider_id: str, from_date: Optional[date] = None
    ) -> List[Appointment]:
        """Provider's appointments ordered by date and start time."""
        try:
            query = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("provider_id", provider_id)
            )
            if from_date:
                query = query.gte("appointment_date", to_iso_date(from_date))
            response = (
                query.order("appointment_date", desc=False)
                .order("start_time", desc=False)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get appointments: {e}") from e

        return [self._parse_appointment(item) for item in response.data]

    async def get_appointments_on_date(self, provider_id: str, day: date) -> List[Appointment]:
        """Provider's appointments on one calendar date."""
        try:
            response = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("provider_id", provider_id)
                .eq("appointment_date", to_iso_date(day))
                .order("start_time", desc=False)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get appointments: {e}") from e

        return [self._parse_appointment(item) for item in response.data]

    async def get_client_appointments(self, client_id: str) -> List[Appointment]:
        """A client's own appointments ordered by date and start time."""
        try:
            response = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("client_id", client_id)
                .order("appointment_date", desc=False)
                .order("start_time", desc=False)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get appointments: {e}") from e

        return [self._parse_appointment(item) for item in response.data]

    async def get_appointment_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID."""
        try:
            response = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to get appointment: {e}") from e

        if not response.data:
            return None
        return self._parse_appointment(response.data[0])

    async def create_appointment(
        self, appointment_data: AppointmentCreate, max_per_day: Optional[int] = None
    ) -> Appointment:
        """
        Create an appointment through the conditional insert.

        Raises:
            SlotConflictError: If an overlapping non-cancelled appointment
                exists or the day is full
            AppointmentCreationError: If the store returned no record
            TransportError: On any other store failure
        """
        data = appointment_data.model_dump(mode="json")
        params = {f"p_{key}": value for key, value in data.items() if key != "status"}
        params["p_max_per_day"] = max_per_day or settings.max_appointments_per_day

        try:
            response = self.client.rpc("book_appointment", params).execute()
        except Exception as e:
            if getattr(e, "code", None) == SLOT_CONFLICT_CODE:
                raise SlotConflictError(
                    f"Slot {data['appointment_date']} {data['start_time']} is no longer available"
                ) from e
            raise TransportError(f"Failed to create appointment: {e}") from e

        rows = response.data
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            raise AppointmentCreationError("Failed to create appointment: no data returned")

        appointment = self._parse_appointment(rows[0])
        logger.info(
            f"Appointment {appointment.id} created for provider {appointment.provider_id} "
            f"on {appointment.appointment_date} at {appointment.start_time}"
        )
        return appointment

    async def update_appointment_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        """
        Set an appointment's status. Any status may follow any other.

        Raises:
            AppointmentNotFoundError: If no appointment has this ID
        """
        update_data = {
            "status": AppointmentStatus(status).value,
            "updated_at": to_iso_string(utc_now()),
        }

        try:
            response = (
                self.client.table("appointments")
                .update(update_data)
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise TransportError(f"Failed to update appointment status: {e}") from e

        if not response.data:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        logger.info(f"Appointment {appointment_id} status set to {update_data['status']}")
        return self._parse_appointment(response.data[0])

    # ========== Helper Methods ==========

    def _parse_provider(self, item: dict) -> ProviderProfile:
        """
        Parse provider data from database response.

        A null working_hours column becomes an empty mapping, which the
        calendar renders as every day closed.
        """
        item = item.copy()
        if item.get("working_hours") is None:
            item["working_hours"] = {}
        for field in ["created_at", "updated_at"]:
            if item.get(field):
                item[field] = parse_iso_datetime(item[field])
        return ProviderProfile(**item)

    def _parse_appointment(self, item: dict) -> Appointment:
        """
        Parse appointment data from database response.

        Args:
            item: Raw appointment row, optionally with the expanded service

        Returns:
            Parsed Appointment object
        """
        item = item.copy()
        for field in ["created_at", "updated_at"]:
            if item.get(field):
                item[field] = parse_iso_datetime(item[field])
        return Appointment(**item)


# Global database client instance
_db_client: Optional[SupabaseClient] = None


def get_db_client() -> SupabaseClient:
    """Get or create database client instance."""
    global _db_client
    if _db_client is None:
        _db_client = SupabaseClient()
    return _db_client
