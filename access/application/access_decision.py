"""
Access decision value returned by the gate.
"""
from dataclasses import dataclass
from typing import Optional

from access_tokens.domain.access_token import AccessTokenInfo, IssuedAccessToken
from core.domain.value_objects import DenialReason, LicenseStatus


@dataclass(frozen=True)
class AccessDecision:
    """Boolean access decision with its reason and hints."""

    allowed: bool
    reason: Optional[DenialReason] = None
    retry_after_seconds: int = 0
    license_status: Optional[LicenseStatus] = None
    token: Optional[AccessTokenInfo] = None
    issued: Optional[IssuedAccessToken] = None

    @classmethod
    def allow(cls, **kwargs) -> "AccessDecision":
        """Allowed decision."""
        return cls(allowed=True, **kwargs)

    @classmethod
    def deny(cls, reason: DenialReason, **kwargs) -> "AccessDecision":
        """Denied decision."""
        return cls(allowed=False, reason=reason, **kwargs)

    @property
    def message(self) -> Optional[str]:
        """User-facing message for a denial, None when allowed."""
        if self.allowed or self.reason is None:
            return None
        if self.reason is DenialReason.RATE_LIMITED and self.retry_after_seconds:
            return f"Too many attempts. Please try again in {self.retry_after_seconds} seconds."
        return self.reason.default_message
