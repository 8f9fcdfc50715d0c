"""
Access-control configuration.

Reads the ACCESS_CONTROL settings dict into an immutable object that is
built once at startup and passed to the services.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core.domain.value_objects import RateLimitPolicy, StorageFailurePolicy

DEFAULT_POLICY_NAME = "default"

DEFAULT_RATE_LIMITS = {
    "password_verify": {"max_attempts": 5, "window_seconds": 300, "block_seconds": 900},
    "access_token": {"max_attempts": 10, "window_seconds": 300, "block_seconds": 900},
    DEFAULT_POLICY_NAME: {"max_attempts": 10, "window_seconds": 60, "block_seconds": 300},
}


def _build_policies(raw: Mapping[str, Mapping[str, Any]]) -> Dict[str, RateLimitPolicy]:
    policies = {}
    for action, values in raw.items():
        try:
            policies[action] = RateLimitPolicy(
                max_attempts=int(values["max_attempts"]),
                window_seconds=int(values["window_seconds"]),
                block_seconds=int(values["block_seconds"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ImproperlyConfigured(
                f"Invalid rate limit policy for action '{action}': {e}"
            ) from e
    if DEFAULT_POLICY_NAME not in policies:
        raise ImproperlyConfigured("RATE_LIMITS must define a 'default' policy")
    return policies


@dataclass(frozen=True)
class AccessControlConfig:
    """Immutable access-control settings."""

    licensed_product: str = "pro_plus"
    license_grace_period_days: int = 14
    rate_limits: Dict[str, RateLimitPolicy] = field(
        default_factory=lambda: _build_policies(DEFAULT_RATE_LIMITS)
    )
    rate_limit_retention_seconds: int = 86400
    access_token_default_ttl_seconds: int = 86400
    storage_failure_policy: StorageFailurePolicy = StorageFailurePolicy.FAIL_CLOSED
    conflict_retry_limit: int = 5

    def __post_init__(self):
        """Validate configuration."""
        if self.license_grace_period_days < 0:
            raise ImproperlyConfigured("LICENSE_GRACE_PERIOD_DAYS cannot be negative")
        if self.access_token_default_ttl_seconds < 1:
            raise ImproperlyConfigured("ACCESS_TOKEN_DEFAULT_TTL_SECONDS must be positive")
        if self.conflict_retry_limit < 1:
            raise ImproperlyConfigured("CONFLICT_RETRY_LIMIT must be at least 1")
        if DEFAULT_POLICY_NAME not in self.rate_limits:
            raise ImproperlyConfigured("rate_limits must define a 'default' policy")

    def policy_for(self, action: str) -> RateLimitPolicy:
        """
        Get the rate limit policy for an action.

        Unregistered actions fall back to the default profile.

        Args:
            action: Action name (e.g. 'password_verify')

        Returns:
            RateLimitPolicy
        """
        return self.rate_limits.get(action, self.rate_limits[DEFAULT_POLICY_NAME])

    @classmethod
    def from_settings(cls, values: Optional[Mapping[str, Any]] = None) -> "AccessControlConfig":
        """
        Build configuration from the ACCESS_CONTROL settings dict.

        Args:
            values: Explicit settings dict (defaults to settings.ACCESS_CONTROL)

        Returns:
            AccessControlConfig instance

        Raises:
            ImproperlyConfigured: If a value is malformed
        """
        if values is None:
            values = getattr(settings, "ACCESS_CONTROL", {})

        raw_limits = dict(DEFAULT_RATE_LIMITS)
        raw_limits.update(values.get("RATE_LIMITS", {}))

        policy_name = values.get("STORAGE_FAILURE_POLICY", StorageFailurePolicy.FAIL_CLOSED.value)
        try:
            failure_policy = StorageFailurePolicy(policy_name)
        except ValueError as e:
            raise ImproperlyConfigured(
                f"STORAGE_FAILURE_POLICY must be 'fail_closed' or 'fail_open', got '{policy_name}'"
            ) from e

        return cls(
            licensed_product=values.get("LICENSED_PRODUCT", "pro_plus"),
            license_grace_period_days=int(values.get("LICENSE_GRACE_PERIOD_DAYS", 14)),
            rate_limits=_build_policies(raw_limits),
            rate_limit_retention_seconds=int(values.get("RATE_LIMIT_RETENTION_SECONDS", 86400)),
            access_token_default_ttl_seconds=int(
                values.get("ACCESS_TOKEN_DEFAULT_TTL_SECONDS", 86400)
            ),
            storage_failure_policy=failure_policy,
            conflict_retry_limit=int(values.get("CONFLICT_RETRY_LIMIT", 5)),
        )
