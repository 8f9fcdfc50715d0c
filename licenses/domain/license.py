"""
License record domain entity.

The stored status is a cache of the last evaluation; the evaluator
re-derives it from (key, expires_at, now) on every decision.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from core.domain.value_objects import LicenseStatus


@dataclass(frozen=True)
class LicenseRecord:
    """
    License record domain entity.

    One record per licensed product (e.g. 'premium', 'pro_plus').
    This is an immutable value object.
    """

    product: str
    key: str
    status: LicenseStatus
    expires_at: Optional[datetime]
    activated_at: Optional[datetime]
    updated_at: Optional[datetime]

    def __post_init__(self):
        """Validate license record."""
        if not self.product or len(self.product.strip()) == 0:
            raise ValueError("Product is required")
        if self.key is None:
            raise ValueError("License key cannot be None")

    @classmethod
    def create(
        cls,
        product: str,
        key: str,
        status: LicenseStatus,
        expires_at: Optional[datetime],
        activated_at: datetime,
    ) -> "LicenseRecord":
        """
        Create a new LicenseRecord.

        Args:
            product: Product slug the license unlocks
            key: Raw license key
            status: Status computed at activation time
            expires_at: Expiry (None for unlimited/development keys)
            activated_at: Activation time

        Returns:
            LicenseRecord instance
        """
        return cls(
            product=product,
            key=key,
            status=status,
            expires_at=expires_at,
            activated_at=activated_at,
            updated_at=activated_at,
        )

    @classmethod
    def inactive(cls, product: str, at: Optional[datetime] = None) -> "LicenseRecord":
        """Record for a product with no key."""
        return cls(
            product=product,
            key="",
            status=LicenseStatus.INACTIVE,
            expires_at=None,
            activated_at=None,
            updated_at=at,
        )

    def with_status(self, status: LicenseStatus, at: datetime) -> "LicenseRecord":
        """
        Create a new LicenseRecord carrying a refreshed cached status.

        Args:
            status: Newly derived status
            at: Time of the refresh

        Returns:
            New LicenseRecord instance
        """
        return replace(self, status=status, updated_at=at)
