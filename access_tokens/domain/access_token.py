"""
Access token domain entities.

Tokens are opaque random secrets; the store keeps only their digest.
Callers receive immutable snapshots, never the stored record.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from core.domain.value_objects import DenialReason


@dataclass(frozen=True)
class AccessTokenInfo:
    """Read-only snapshot of a token handed to callers."""

    target_id: int
    created_at: datetime
    expires_at: datetime
    max_uses: int
    use_count: int
    remaining_uses: Optional[int]
    issued_by: str

    @property
    def is_unlimited(self) -> bool:
        """Token has no use limit."""
        return self.max_uses == 0


@dataclass(frozen=True)
class AccessToken:
    """
    Access token domain entity.

    max_uses == 0 means unlimited. A token is usable iff
    now < expires_at and (max_uses == 0 or use_count < max_uses).
    """

    token_hash: str
    target_id: int
    created_at: datetime
    expires_at: datetime
    max_uses: int = 0
    use_count: int = 0
    issued_by: str = ""

    def __post_init__(self):
        """Validate access token."""
        if not self.token_hash:
            raise ValueError("Token hash is required")
        if self.max_uses < 0:
            raise ValueError("max_uses cannot be negative")
        if self.use_count < 0:
            raise ValueError("use_count cannot be negative")
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")

    def is_expired(self, now: datetime) -> bool:
        """Check if token has expired."""
        return now >= self.expires_at

    @property
    def is_exhausted(self) -> bool:
        """Check if every allowed use has been consumed."""
        return self.max_uses > 0 and self.use_count >= self.max_uses

    def is_usable(self, now: datetime) -> bool:
        """Check if token can still be consumed."""
        return not self.is_expired(now) and not self.is_exhausted

    @property
    def remaining_uses(self) -> Optional[int]:
        """Uses left, or None when unlimited."""
        if self.max_uses == 0:
            return None
        return max(0, self.max_uses - self.use_count)

    def consumed(self) -> "AccessToken":
        """Create a new token with one more use recorded."""
        return replace(self, use_count=self.use_count + 1)

    def to_info(self) -> AccessTokenInfo:
        """Immutable snapshot for callers."""
        return AccessTokenInfo(
            target_id=self.target_id,
            created_at=self.created_at,
            expires_at=self.expires_at,
            max_uses=self.max_uses,
            use_count=self.use_count,
            remaining_uses=self.remaining_uses,
            issued_by=self.issued_by,
        )


@dataclass(frozen=True)
class IssuedAccessToken:
    """
    Result of issuing a token.

    `secret` is the only copy of the plaintext; it cannot be recovered
    from the store afterwards.
    """

    secret: str
    token: AccessTokenInfo

    def __repr__(self) -> str:
        return f"IssuedAccessToken(secret='***', token={self.token!r})"


@dataclass(frozen=True)
class TokenValidationResult:
    """Outcome of validate_and_consume."""

    valid: bool
    reason: Optional[DenialReason] = None
    token: Optional[AccessTokenInfo] = None

    @classmethod
    def success(cls, token: AccessTokenInfo) -> "TokenValidationResult":
        """Successful validation."""
        return cls(valid=True, reason=None, token=token)

    @classmethod
    def deny(cls, reason: DenialReason) -> "TokenValidationResult":
        """Denied validation."""
        return cls(valid=False, reason=reason, token=None)

    @property
    def remaining_uses(self) -> Optional[int]:
        """Uses left after this validation (None when unlimited or denied)."""
        return self.token.remaining_uses if self.token else None

    @property
    def message(self) -> Optional[str]:
        """User-facing message for a denial, None when valid."""
        return self.reason.default_message if self.reason else None
