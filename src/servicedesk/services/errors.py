"""Custom service layer errors."""

from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base error for service-layer failures."""


class ValidationError(ServiceError):
    """Raised when a business rule validation fails."""

    def __init__(
        self, message: str, field_errors: Optional[dict[str, str]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field_errors = dict(field_errors or {})


class InvalidRangeError(ValidationError):
    """Raised when an end date falls before its start date."""


class InvalidRenewalError(ValidationError):
    """Raised when a renewal does not extend the current coverage."""


class OtpMismatchError(ValidationError):
    """Raised when a delivery OTP is wrong, missing or no longer usable."""


class InsufficientBalanceError(ValidationError):
    """Raised when requested leave exceeds the available balance."""


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""
