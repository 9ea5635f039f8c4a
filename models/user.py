"""Identity-provider principal models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Account role tag."""

    PROVIDER = "provider"
    CLIENT = "client"


class Principal(BaseModel):
    """Current-session principal supplied by the identity provider."""

    id: str = Field(..., description="Supabase auth user ID")
    email: Optional[str] = None
    role: Optional[UserRole] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

    @property
    def is_provider(self) -> bool:
        return self.role == UserRole.PROVIDER
