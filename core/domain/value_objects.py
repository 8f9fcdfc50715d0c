"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from dataclasses import dataclass
from enum import Enum


class LicenseStatus(Enum):
    """License status value object."""

    INACTIVE = "inactive"
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    GRACE_PERIOD = "grace_period"

    @property
    def is_usable(self) -> bool:
        """Premium features stay on while valid or within the grace period."""
        return self in (LicenseStatus.VALID, LicenseStatus.GRACE_PERIOD)

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class LicenseTier(Enum):
    """License key tier, derived from the key format."""

    PRO_PLUS = "pro_plus"
    UNLIMITED = "unlimited"
    DEVELOPMENT = "development"

    @property
    def expires(self) -> bool:
        """Only paid keys carry an expiry date."""
        return self is LicenseTier.PRO_PLUS

    def __str__(self) -> str:
        """Return tier as string."""
        return self.value


class DenialReason(Enum):
    """Machine-readable reason attached to every denied request."""

    NOT_FOUND = "not_found"
    WRONG_TARGET = "wrong_target"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    RATE_LIMITED = "rate_limited"
    LICENSE_INACTIVE = "license_inactive"
    INVALID_CREDENTIALS = "invalid_credentials"

    @property
    def default_message(self) -> str:
        """User-facing message for this reason."""
        return _DENIAL_MESSAGES[self]

    def __str__(self) -> str:
        """Return reason as string."""
        return self.value


_DENIAL_MESSAGES = {
    DenialReason.NOT_FOUND: "Invalid or expired token.",
    DenialReason.WRONG_TARGET: "Token does not match this document.",
    DenialReason.EXPIRED: "Token has expired.",
    DenialReason.EXHAUSTED: "Token has reached maximum uses.",
    DenialReason.RATE_LIMITED: "Too many attempts. Please try again later.",
    DenialReason.LICENSE_INACTIVE: "A valid license is required for this feature.",
    DenialReason.INVALID_CREDENTIALS: "Incorrect password.",
}


class StorageFailurePolicy(Enum):
    """How a component answers when its store is unavailable."""

    FAIL_CLOSED = "fail_closed"
    FAIL_OPEN = "fail_open"

    def __str__(self) -> str:
        """Return policy as string."""
        return self.value


@dataclass(frozen=True)
class RateLimitPolicy:
    """Attempt budget for one rate-limited action."""

    max_attempts: int
    window_seconds: int
    block_seconds: int

    def __post_init__(self):
        """Validate policy values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        if self.block_seconds < 1:
            raise ValueError("block_seconds must be at least 1")
