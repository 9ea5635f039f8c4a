"""Service catalog models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.constants import MAX_SERVICE_NAME_LENGTH


class Service(BaseModel):
    """A service offered by exactly one provider."""

    id: Optional[str] = None
    provider_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0, description="Slot step and appointment length")
    price: Decimal = Field(..., ge=0)
    active: bool = True

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "provider_id": "uuid-here",
                "name": "Corte de cabelo",
                "description": "Corte e finalização",
                "duration_minutes": 30,
                "price": 45.0,
                "active": True,
            }
        }
    )


class ServiceCreate(BaseModel):
    """Service creation model."""

    name: str = Field(..., max_length=MAX_SERVICE_NAME_LENGTH)
    description: Optional[str] = None
    duration_minutes: int = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)
    active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Service name is required and stored trimmed."""
        v = v.strip()
        if not v:
            raise ValueError("Service name is required")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        """Blank descriptions are stored as null."""
        if v is None:
            return None
        return v.strip() or None
