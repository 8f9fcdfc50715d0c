"""
Rate limit domain entities.

A record tracks attempts for one (action, client, target) identifier
inside a fixed window. The raw client address is never stored; the
identifier is a digest of the triple.
"""
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from core.domain.value_objects import RateLimitPolicy


@dataclass(frozen=True)
class RateLimitRecord:
    """
    Attempt counter domain entity.

    This is an immutable value object; repositories apply changes with
    atomic conditional updates and return fresh records.
    """

    identifier: str
    action: str
    target_id: int
    attempts: int
    window_start: datetime
    blocked_until: Optional[datetime] = None

    def __post_init__(self):
        """Validate rate limit record."""
        if not self.identifier:
            raise ValueError("Identifier is required")
        if not self.action:
            raise ValueError("Action is required")
        if self.attempts < 0:
            raise ValueError("Attempts cannot be negative")

    @classmethod
    def first_attempt(
        cls, identifier: str, action: str, target_id: int, now: datetime
    ) -> "RateLimitRecord":
        """
        Create the record for the first failed attempt of a window.

        Args:
            identifier: Digest of (action, client, target)
            action: Action name
            target_id: Target the action applies to
            now: Attempt time

        Returns:
            RateLimitRecord with one attempt
        """
        return cls(
            identifier=identifier,
            action=action,
            target_id=target_id,
            attempts=1,
            window_start=now,
            blocked_until=None,
        )

    def is_blocked(self, now: datetime) -> bool:
        """Check whether a lockout is in force at `now`."""
        return self.blocked_until is not None and now < self.blocked_until

    def window_expired(self, policy: RateLimitPolicy, now: datetime) -> bool:
        """The window is active while now < window_start + window_seconds."""
        return now >= self.window_end(policy.window_seconds)

    def retry_after_seconds(self, now: datetime) -> int:
        """
        Seconds until the lockout ends, rounded up.

        Returns:
            Seconds remaining (0 when not blocked)
        """
        if not self.is_blocked(now):
            return 0
        return max(1, math.ceil((self.blocked_until - now).total_seconds()))

    def window_end(self, window_seconds: int) -> datetime:
        """First instant outside the current window."""
        return self.window_start + timedelta(seconds=window_seconds)

    def is_stale(self, threshold: datetime, window_seconds: int) -> bool:
        """
        Check whether both the window and the block ended by `threshold`.

        Args:
            threshold: Retention cut-off (now - retention)
            window_seconds: Window length of the record's action

        Returns:
            True if the record may be swept
        """
        if self.window_end(window_seconds) > threshold:
            return False
        return self.blocked_until is None or self.blocked_until <= threshold

    def with_blocked_until(self, blocked_until: datetime) -> "RateLimitRecord":
        """Create a new record with a lockout set."""
        return replace(self, blocked_until=blocked_until)


@dataclass(frozen=True)
class RateLimitDecision:
    """Answer to "may this caller attempt the action now?"."""

    allowed: bool
    retry_after_seconds: int = 0
    attempts_remaining: int = 0

    @classmethod
    def allow(cls, attempts_remaining: int) -> "RateLimitDecision":
        """Allowed decision."""
        return cls(allowed=True, retry_after_seconds=0, attempts_remaining=attempts_remaining)

    @classmethod
    def deny(cls, retry_after_seconds: int) -> "RateLimitDecision":
        """Blocked decision."""
        return cls(allowed=False, retry_after_seconds=retry_after_seconds, attempts_remaining=0)

    @property
    def message(self) -> Optional[str]:
        """User-facing message for a denial, None when allowed."""
        if self.allowed:
            return None
        return f"Too many attempts. Please try again in {self.retry_after_seconds} seconds."
