"""
Unit tests for Supabase database client.
Tests with mocked Supabase API calls.
"""

from datetime import date, time
from unittest.mock import MagicMock, patch

import pytest

from db.supabase_client import APPOINTMENT_SELECT, SupabaseClient
from models.appointment import AppointmentCreate, AppointmentStatus
from models.provider import ProviderProfileUpdate
from models.service import ServiceCreate
from models.user import Principal
from utils.exceptions import (
    AppointmentCreationError,
    AppointmentNotFoundError,
    AuthorizationError,
    ConfigurationError,
    ProviderNotFoundError,
    SlotConflictError,
    TransportError,
)

APPOINTMENT_ROW = {
    "id": "appt_123",
    "provider_id": "provider_123",
    "service_id": "service_123",
    "client_id": "client_123",
    "client_name": "Maria Silva",
    "client_email": "maria@salao.com.br",
    "client_phone": "+5511987654321",
    "appointment_date": "2024-01-15",
    "start_time": "09:30:00",
    "end_time": "10:15:00",
    "status": "pending",
    "notes": None,
    "service": {"name": "Manicure", "duration_minutes": 45},
    "created_at": "2024-01-10T12:00:00Z",
}

PROVIDER_ROW = {
    "id": "provider_123",
    "user_id": "user_123",
    "business_name": "Salão Bela Vista",
    "neighboorhod": "Centro",
    "working_hours": None,
}


class StoreError(Exception):
    """Stand-in for a PostgREST API error carrying a SQLSTATE code."""

    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


@pytest.fixture
def supabase_client(mock_supabase_client):
    """Create SupabaseClient with mocked client."""
    mock_client, _ = mock_supabase_client
    with patch("db.supabase_client.create_client", return_value=mock_client):
        client = SupabaseClient()
        client.client = mock_client
        return client


def _response(data):
    response = MagicMock()
    response.data = data
    return response


@pytest.fixture
def appointment_data():
    return AppointmentCreate(
        provider_id="provider_123",
        service_id="service_123",
        client_id="client_123",
        client_name="Maria Silva",
        client_email="maria@salao.com.br",
        client_phone="+5511987654321",
        appointment_date=date(2024, 1, 15),
        start_time="09:30",
        end_time="10:15",
    )


# ========== Providers ==========


@pytest.mark.asyncio
async def test_get_provider_by_id_found(supabase_client, mock_supabase_client):
    """Null working hours become an empty mapping; the column alias is honoured."""
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([PROVIDER_ROW])

    result = await supabase_client.get_provider_by_id("provider_123")

    assert result.business_name == "Salão Bela Vista"
    assert result.neighborhood == "Centro"
    assert result.working_hours == {}


@pytest.mark.asyncio
async def test_get_provider_by_id_is_cached(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([PROVIDER_ROW])

    await supabase_client.get_provider_by_id("provider_123")
    await supabase_client.get_provider_by_id("provider_123")

    assert mock_table.select.return_value.eq.return_value.execute.call_count == 1


@pytest.mark.asyncio
async def test_get_provider_by_id_not_found(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([])

    assert await supabase_client.get_provider_by_id("missing") is None


@pytest.mark.asyncio
async def test_store_failure_is_transport_error(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.execute.side_effect = Exception("connection reset")

    with pytest.raises(TransportError):
        await supabase_client.get_all_providers()


@pytest.mark.asyncio
async def test_update_provider_profile_requires_provider(supabase_client):
    with pytest.raises(AuthorizationError):
        await supabase_client.update_provider_profile(
            Principal(id="client_1", role="client"), ProviderProfileUpdate(city="Recife")
        )


@pytest.mark.asyncio
async def test_update_provider_profile_missing_profile(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([])

    with pytest.raises(ProviderNotFoundError):
        await supabase_client.update_provider_profile(
            Principal(id="user_123", role="provider"), ProviderProfileUpdate(city="Recife")
        )


@pytest.mark.asyncio
async def test_update_provider_profile_rejects_bad_hours(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([PROVIDER_ROW])

    with pytest.raises(ConfigurationError):
        await supabase_client.update_provider_profile(
            Principal(id="user_123", role="provider"),
            ProviderProfileUpdate(working_hours={"Segunda": {"open": "09:00", "close": "18:00"}}),
        )

    mock_table.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_update_provider_profile_upserts(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([PROVIDER_ROW])
    mock_table.upsert.return_value.execute.return_value = _response(
        [{**PROVIDER_ROW, "neighboorhod": "Boa Viagem", "city": "Recife"}]
    )

    result = await supabase_client.update_provider_profile(
        Principal(id="user_123", role="provider"),
        ProviderProfileUpdate(city="Recife", neighborhood="Boa Viagem"),
    )

    data = mock_table.upsert.call_args.args[0]
    assert data["neighboorhod"] == "Boa Viagem"
    assert data["user_id"] == "user_123"
    assert data["business_name"] == "Salão Bela Vista"
    assert mock_table.upsert.call_args.kwargs["on_conflict"] == "user_id"
    assert result.city == "Recife"


# ========== Services ==========


@pytest.mark.asyncio
async def test_get_services_active_only(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    query = mock_table.select.return_value.eq.return_value
    query.eq.return_value.execute.return_value = _response(
        [{"id": "s1", "provider_id": "provider_123", "name": "Escova", "duration_minutes": 40, "price": 50}]
    )

    result = await supabase_client.get_services("provider_123")

    query.eq.assert_called_once_with("active", True)
    assert result[0].duration_minutes == 40


@pytest.mark.asyncio
async def test_get_active_services(supabase_client, mock_supabase_client):
    mock_client, mock_table = mock_supabase_client
    query = mock_table.select.return_value
    query.eq.return_value.execute.return_value = _response(
        [
            {"id": "s1", "provider_id": "provider_123", "name": "Escova", "duration_minutes": 40, "price": 50},
            {"id": "s2", "provider_id": "provider_456", "name": "Manicure", "duration_minutes": 45, "price": 35},
        ]
    )

    result = await supabase_client.get_active_services()

    mock_client.table.assert_called_with("services")
    query.eq.assert_called_once_with("active", True)
    assert [s.provider_id for s in result] == ["provider_123", "provider_456"]


@pytest.mark.asyncio
async def test_get_active_services_store_failure(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.side_effect = Exception("timeout")

    with pytest.raises(TransportError):
        await supabase_client.get_active_services()


@pytest.mark.asyncio
async def test_create_service(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.return_value = _response(
        [{"id": "s1", "provider_id": "provider_123", "name": "Escova", "duration_minutes": 40, "price": "50.00"}]
    )

    result = await supabase_client.create_service(
        "provider_123", ServiceCreate(name=" Escova ", duration_minutes=40, price=50)
    )

    inserted = mock_table.insert.call_args.args[0]
    assert inserted["provider_id"] == "provider_123"
    assert inserted["name"] == "Escova"
    assert result.id == "s1"


# ========== Appointments ==========


@pytest.mark.asyncio
async def test_get_appointments_on_date(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    chain = mock_table.select.return_value.eq.return_value.eq.return_value.order.return_value
    chain.execute.return_value = _response([APPOINTMENT_ROW])

    result = await supabase_client.get_appointments_on_date("provider_123", date(2024, 1, 15))

    mock_table.select.assert_called_with(APPOINTMENT_SELECT)
    mock_table.select.return_value.eq.return_value.eq.assert_called_with("appointment_date", "2024-01-15")
    assert result[0].start_time == time(9, 30)
    assert result[0].service.duration_minutes == 45
    assert result[0].created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_provider_appointments_from_date(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    query = mock_table.select.return_value.eq.return_value
    query.gte.return_value.order.return_value.order.return_value.execute.return_value = _response(
        [APPOINTMENT_ROW]
    )

    result = await supabase_client.get_provider_appointments("provider_123", date(2024, 1, 15))

    query.gte.assert_called_once_with("appointment_date", "2024-01-15")
    assert len(result) == 1


@pytest.mark.asyncio
async def test_create_appointment_calls_conditional_insert(
    supabase_client, mock_supabase_client, appointment_data
):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.return_value = _response([APPOINTMENT_ROW])

    result = await supabase_client.create_appointment(appointment_data, max_per_day=10)

    name, params = mock_client.rpc.call_args.args
    assert name == "book_appointment"
    assert params["p_provider_id"] == "provider_123"
    assert params["p_appointment_date"] == "2024-01-15"
    assert params["p_start_time"] == "09:30:00"
    assert params["p_end_time"] == "10:15:00"
    assert params["p_max_per_day"] == 10
    assert "p_status" not in params
    assert result.id == "appt_123"
    assert result.status == "pending"


@pytest.mark.asyncio
async def test_create_appointment_accepts_single_row(
    supabase_client, mock_supabase_client, appointment_data
):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.return_value = _response(APPOINTMENT_ROW)

    result = await supabase_client.create_appointment(appointment_data)

    assert result.id == "appt_123"


@pytest.mark.asyncio
async def test_create_appointment_conflict(supabase_client, mock_supabase_client, appointment_data):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.side_effect = StoreError("slot_unavailable", "23P01")

    with pytest.raises(SlotConflictError):
        await supabase_client.create_appointment(appointment_data)


@pytest.mark.asyncio
async def test_create_appointment_transport_failure(
    supabase_client, mock_supabase_client, appointment_data
):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.side_effect = StoreError("timeout", "57014")

    with pytest.raises(TransportError):
        await supabase_client.create_appointment(appointment_data)


@pytest.mark.asyncio
async def test_create_appointment_no_data(supabase_client, mock_supabase_client, appointment_data):
    mock_client, _ = mock_supabase_client
    mock_client.rpc.return_value.execute.return_value = _response([])

    with pytest.raises(AppointmentCreationError):
        await supabase_client.create_appointment(appointment_data)


@pytest.mark.asyncio
async def test_update_appointment_status(supabase_client, mock_supabase_client):
    """Any status may follow any other."""
    _, mock_table = mock_supabase_client
    mock_table.update.return_value.eq.return_value.execute.return_value = _response(
        [{**APPOINTMENT_ROW, "status": "pending"}]
    )

    result = await supabase_client.update_appointment_status("appt_123", AppointmentStatus.PENDING)

    assert mock_table.update.call_args.args[0]["status"] == "pending"
    assert result.status == "pending"


@pytest.mark.asyncio
async def test_update_appointment_status_missing(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.update.return_value.eq.return_value.execute.return_value = _response([])

    with pytest.raises(AppointmentNotFoundError):
        await supabase_client.update_appointment_status("missing", "cancelled")


# ========== Identity ==========


@pytest.mark.asyncio
async def test_get_current_principal(supabase_client, mock_supabase_client):
    mock_client, mock_table = mock_supabase_client
    user = MagicMock(id="user_123", email="ana@salao.com.br")
    mock_client.auth.get_user.return_value = MagicMock(user=user)
    mock_table.select.return_value.eq.return_value.execute.side_effect = [
        _response([{"role": "client"}]),
        _response([{"user_id": "user_123", "full_name": "Ana Souza", "phone": None}]),
    ]

    principal = await supabase_client.get_current_principal()

    assert principal.id == "user_123"
    assert principal.role == "client"
    assert principal.full_name == "Ana Souza"


@pytest.mark.asyncio
async def test_get_current_principal_signed_out(supabase_client, mock_supabase_client):
    mock_client, _ = mock_supabase_client
    mock_client.auth.get_user.return_value = None

    assert await supabase_client.get_current_principal() is None


@pytest.mark.asyncio
async def test_register_provider_creates_profile(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.return_value = _response(
        [{**PROVIDER_ROW, "business_name": "Ana Souza"}]
    )

    result = await supabase_client.register_user(
        Principal(id="user_123", email="ana@salao.com.br", role="provider"), "Ana Souza"
    )

    tables = [c.args[0] for c in supabase_client.client.table.call_args_list]
    assert tables == ["profiles", "user_roles", "provider_profiles"]
    working_hours = mock_table.insert.call_args.args[0]["working_hours"]
    assert working_hours["Segunda"] == {"open": "09:00", "close": "18:00", "closed": False}
    assert working_hours["Domingo"]["closed"] is True
    assert result.business_name == "Ana Souza"


@pytest.mark.asyncio
async def test_register_client_has_no_provider_profile(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client

    result = await supabase_client.register_user(
        Principal(id="user_456", email="bia@salao.com.br", role="client"), "Bia"
    )

    assert result is None
    assert mock_table.insert.call_count == 2
