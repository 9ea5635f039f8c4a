"""Provider profile and weekly working-hours models."""

import logging
from datetime import datetime, time
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.service import Service
from utils.constants import (
    DEFAULT_CLOSE_TIME,
    DEFAULT_CLOSED_WEEKDAYS,
    DEFAULT_LOCALE,
    DEFAULT_OPEN_TIME,
    WEEKDAY_NAMES,
)
from utils.datetime_utils import format_clock, parse_clock
from utils.exceptions import ConfigurationError
from utils.validation import validate_postal_code

logger = logging.getLogger(__name__)


class DayConfig(BaseModel):
    """Opening window for one weekday."""

    open: Optional[time] = None
    close: Optional[time] = None
    closed: bool = False

    @field_validator("open", "close", mode="before")
    @classmethod
    def parse_times(cls, v: Any) -> Optional[time]:
        """Accept 'HH:MM' / 'HH:MM:SS' strings; empty means unset."""
        if v is None or v == "":
            return None
        return parse_clock(v)

    @model_validator(mode="after")
    def check_closed_consistency(self) -> "DayConfig":
        """closed is true exactly when both open and close are unset."""
        if self.closed:
            if self.open is not None or self.close is not None:
                raise ValueError("A closed day cannot have open/close times")
        elif self.open is None or self.close is None:
            raise ValueError("An open day needs both open and close times")
        return self

    @property
    def is_open(self) -> bool:
        return not self.closed and self.open is not None and self.close is not None

    def to_store(self) -> Dict[str, Any]:
        """JSON shape stored in provider_profiles.working_hours."""
        return {
            "open": format_clock(self.open) if self.open else None,
            "close": format_clock(self.close) if self.close else None,
            "closed": self.closed,
        }


WeeklyHours = Dict[str, DayConfig]


def weekday_keys(locale: str = DEFAULT_LOCALE) -> tuple:
    """The 7 weekday key names for a locale, Monday first."""
    try:
        return WEEKDAY_NAMES[locale]
    except KeyError:
        raise ConfigurationError(f"Unsupported weekday locale: {locale}") from None


def default_working_hours(locale: str = DEFAULT_LOCALE) -> WeeklyHours:
    """Monday-Friday 09:00-18:00, weekends closed."""
    hours: WeeklyHours = {}
    for index, name in enumerate(weekday_keys(locale)):
        if index in DEFAULT_CLOSED_WEEKDAYS:
            hours[name] = DayConfig(closed=True)
        else:
            hours[name] = DayConfig(open=DEFAULT_OPEN_TIME, close=DEFAULT_CLOSE_TIME)
    return hours


def resolve_day_config(
    weekly_hours: Optional[Mapping[str, Any]], weekday_name: str
) -> Optional[DayConfig]:
    """
    Look up one weekday leniently.

    Returns None when the key is missing or the entry is malformed, so a
    provider with partial data renders that day as closed instead of
    failing the whole calendar.
    """
    if not weekly_hours:
        return None
    raw = weekly_hours.get(weekday_name)
    if raw is None:
        return None
    if isinstance(raw, DayConfig):
        return raw
    try:
        return DayConfig.model_validate(raw)
    except (ValueError, TypeError) as e:
        logger.warning(f"Treating malformed working hours for {weekday_name} as closed: {e}")
        return None


def validate_weekly_hours(
    weekly_hours: Mapping[str, Any], locale: str = DEFAULT_LOCALE
) -> WeeklyHours:
    """
    Strictly validate a full week before it is saved.

    Raises:
        ConfigurationError: On missing or unknown weekday keys, malformed
            entries, or an open day whose close is not after its open
    """
    keys = weekday_keys(locale)
    missing = [k for k in keys if k not in weekly_hours]
    extra = [k for k in weekly_hours if k not in keys]
    if missing or extra:
        raise ConfigurationError(
            f"Working hours must define exactly {', '.join(keys)}; "
            f"missing: {missing or '-'}, unknown: {extra or '-'}"
        )

    validated: WeeklyHours = {}
    for name in keys:
        raw = weekly_hours[name]
        try:
            config = raw if isinstance(raw, DayConfig) else DayConfig.model_validate(raw)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid working hours for {name}: {e}") from e
        if config.is_open and config.open >= config.close:
            raise ConfigurationError(
                f"Working hours for {name} must close after they open "
                f"({format_clock(config.open)}-{format_clock(config.close)})"
            )
        validated[name] = config
    return validated


def weekly_hours_to_store(weekly_hours: WeeklyHours) -> Dict[str, Dict[str, Any]]:
    """Serialize a validated week for the working_hours JSON column."""
    return {name: config.to_store() for name, config in weekly_hours.items()}


class ProviderProfile(BaseModel):
    """Provider profile; one per provider account."""

    id: Optional[str] = None
    user_id: str = Field(..., description="Owning identity (Supabase auth user)")
    business_name: str
    description: Optional[str] = None
    address: Optional[str] = None
    cep: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    neighborhood: Optional[str] = Field(
        None, validation_alias="neighboorhod", serialization_alias="neighboorhod"
    )
    avatar_url: Optional[str] = None
    working_hours: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True)


class ProviderProfileUpdate(BaseModel):
    """Owner-editable provider fields."""

    business_name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    cep: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    neighborhood: Optional[str] = None
    working_hours: Optional[Dict[str, Any]] = None

    @field_validator("business_name")
    @classmethod
    def validate_business_name(cls, v: Optional[str]) -> Optional[str]:
        """Business name cannot be blanked out."""
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Business name is required")
        return v

    @field_validator("cep")
    @classmethod
    def validate_cep(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if not validate_postal_code(v):
            raise ValueError("CEP must have 8 digits")
        return v.strip()


class ProviderWithServices(ProviderProfile):
    """Provider profile with its active services attached."""

    services: List[Service] = Field(default_factory=list)
