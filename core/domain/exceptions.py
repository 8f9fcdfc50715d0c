"""
Domain exceptions.

Domain exceptions represent conditions the caller must treat differently
from an ordinary denial. Expected denials (expired token, rate limited,
inactive license) are returned as values, never raised.
"""
from typing import Optional


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class StorageUnavailableError(DomainException):
    """
    Raised when the persistent store cannot serve a request.

    Callers must map this to a different response than a denial
    (e.g. 503 instead of 403/429).
    """

    def __init__(
        self,
        message: str = "Access control storage is unavailable",
        component: Optional[str] = None,
        code: str = "STORAGE_UNAVAILABLE",
    ):
        super().__init__(message, code=code)
        self.component = component


class ConcurrencyConflictError(StorageUnavailableError):
    """Raised when a conditional update keeps losing to concurrent writers."""

    def __init__(
        self,
        message: str = "Concurrent update retries exhausted",
        component: Optional[str] = None,
    ):
        super().__init__(message, component=component, code="CONCURRENCY_CONFLICT")


class LicenseException(DomainException):
    """Base exception for license-related errors."""

    pass


class InvalidLicenseKeyError(LicenseException):
    """Raised when an operator submits a malformed license key."""

    def __init__(self, message: str = "Invalid license key format"):
        super().__init__(message, code="INVALID_LICENSE_KEY")
