"""
Custom exception classes for better error handling.
Provides specific error types instead of generic exceptions.
"""

from typing import Iterable, Optional


class ConfigurationError(Exception):
    """Raised when a provider's working-hours configuration is malformed."""

    pass


class ValidationError(Exception):
    """Raised when required booking input is missing or invalid."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.fields = list(fields or [])


class AuthorizationError(Exception):
    """Raised when a principal mutates data it does not own."""

    pass


class DatabaseError(Exception):
    """Base exception for data store operations."""

    pass


class TransportError(DatabaseError):
    """Raised when the data store or the network fails."""

    pass


class ProviderNotFoundError(DatabaseError):
    """Raised when a provider profile is not found."""

    pass


class AppointmentNotFoundError(DatabaseError):
    """Raised when an appointment is not found."""

    pass


class SlotConflictError(DatabaseError):
    """Raised when the selected slot is no longer available."""

    pass


class AppointmentCreationError(DatabaseError):
    """Raised when appointment creation returns no record."""

    pass
