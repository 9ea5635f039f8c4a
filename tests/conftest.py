"""
Pytest configuration and shared fixtures.
"""

from contextlib import ExitStack
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from models.appointment import Appointment
from models.provider import ProviderProfile, default_working_hours, weekly_hours_to_store
from models.service import Service

# 2024-01-15 is a Monday
MONDAY = date(2024, 1, 15)


# Modules that bind ``settings`` at import time
SETTINGS_TARGETS = (
    "booking.availability.settings",
    "booking.submitter.settings",
    "booking.views.settings",
    "db.supabase_client.settings",
)


@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings for all tests."""
    with ExitStack() as stack:
        mock_settings = stack.enter_context(patch("config.settings"))
        mock_settings.supabase_url = "https://test.supabase.co"
        mock_settings.supabase_key = "test_key"
        mock_settings.timezone = "America/Sao_Paulo"
        mock_settings.weekday_locale = "pt-BR"
        mock_settings.calendar_first_weekday = 6
        mock_settings.booking_window_days = 14
        mock_settings.max_appointments_per_day = 10
        mock_settings.log_level = "INFO"
        mock_settings.log_dir = "logs"
        for target in SETTINGS_TARGETS:
            stack.enter_context(patch(target, mock_settings))
        yield mock_settings


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table


@pytest.fixture
def weekly_hours():
    """Monday-Friday 09:00-18:00, weekends closed, as stored in the database."""
    return weekly_hours_to_store(default_working_hours("pt-BR"))


@pytest.fixture
def provider(weekly_hours):
    return ProviderProfile(
        id="provider_123",
        user_id="user_123",
        business_name="Salão Bela Vista",
        description="Cortes e coloração",
        city="São Paulo",
        working_hours=weekly_hours,
    )


@pytest.fixture
def service():
    """A 60 minute service."""
    return Service(
        id="service_123",
        provider_id="provider_123",
        name="Corte de cabelo",
        duration_minutes=60,
        price=Decimal("45.00"),
    )


@pytest.fixture
def make_appointment():
    """Factory for appointments on MONDAY unless another date is given."""

    def _make(start="10:00", end="11:00", status="pending", day=MONDAY, **kwargs):
        data = {
            "id": f"appt_{start}_{status}",
            "provider_id": "provider_123",
            "service_id": "service_123",
            "client_name": "Maria Silva",
            "client_email": "maria@salao.com.br",
            "client_phone": "+5511987654321",
            "appointment_date": day,
            "start_time": start,
            "end_time": end,
            "status": status,
        }
        data.update(kwargs)
        return Appointment(**data)

    return _make


@pytest.fixture
def monday_morning():
    """'now' early on MONDAY, before opening."""
    return datetime(2024, 1, 15, 8, 0)
