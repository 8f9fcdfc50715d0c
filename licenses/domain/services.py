"""
License domain services.

The evaluator is a pure classifier: key format -> tier, and
(key, expires_at, now) -> status. The key formats are a tier gate,
not an authentication mechanism.
"""
import math
import re
from datetime import datetime, timedelta
from typing import Optional

from core.domain.value_objects import LicenseStatus, LicenseTier
from licenses.domain.license import LicenseRecord

GRACE_PERIOD_DAYS = 14
MIN_KEY_LENGTH = 20
PAID_TERM = timedelta(days=365)

KEY_PATTERNS = (
    (
        LicenseTier.PRO_PLUS,
        re.compile(
            r"^PDF\$PRO\+#[A-Z0-9]{4}-[A-Z0-9]{4}@[A-Z0-9]{4}-[A-Z0-9]{4}![A-Z0-9]{4}$",
            re.IGNORECASE,
        ),
    ),
    (
        LicenseTier.UNLIMITED,
        re.compile(r"^PDF\$UNLIMITED#[A-Z0-9]{4}@[A-Z0-9]{4}![A-Z0-9]{4}$", re.IGNORECASE),
    ),
    (
        LicenseTier.DEVELOPMENT,
        re.compile(r"^PDF\$DEV#[A-Z0-9]{4}-[A-Z0-9]{4}@[A-Z0-9]{4}![A-Z0-9]{4}$", re.IGNORECASE),
    ),
)


def mask_license_key(key: str) -> str:
    """
    Mask a license key for display.

    Args:
        key: Raw license key

    Returns:
        Key with all but the first 6 and last 4 characters replaced by '*'
    """
    key = key or ""
    if len(key) <= 10:
        return "*" * len(key)
    return key[:6] + "*" * (len(key) - 10) + key[-4:]


class LicenseEvaluator:
    """Domain service mapping a license record and a time to a status."""

    def __init__(self, grace_period_days: int = GRACE_PERIOD_DAYS):
        """
        Initialize evaluator.

        Args:
            grace_period_days: Days after expiry during which features stay on.
                Shared by every tier; configured per deployment.
        """
        if grace_period_days < 0:
            raise ValueError("Grace period cannot be negative")
        self.grace_period = timedelta(days=grace_period_days)

    @staticmethod
    def classify(key: str) -> Optional[LicenseTier]:
        """
        Classify a key by format.

        Args:
            key: Raw license key

        Returns:
            LicenseTier or None if the key matches no known format
        """
        if not isinstance(key, str) or len(key) < MIN_KEY_LENGTH:
            return None
        for tier, pattern in KEY_PATTERNS:
            if pattern.match(key):
                return tier
        return None

    def evaluate(self, record: Optional[LicenseRecord], now: datetime) -> LicenseStatus:
        """
        Derive the license status.

        The stored record.status is ignored; it is only a cache.

        Args:
            record: License record (None means no license stored)
            now: Current time

        Returns:
            LicenseStatus
        """
        if record is None:
            return LicenseStatus.INACTIVE
        return self.evaluate_key(record.key, record.expires_at, now)

    def evaluate_key(
        self, key: Optional[str], expires_at: Optional[datetime], now: datetime
    ) -> LicenseStatus:
        """
        Derive the status of a raw key.

        Args:
            key: Raw license key
            expires_at: Expiry set at issuance, if any
            now: Current time

        Returns:
            LicenseStatus
        """
        if not key:
            return LicenseStatus.INACTIVE
        if not isinstance(key, str) or len(key) < MIN_KEY_LENGTH:
            return LicenseStatus.INVALID

        tier = self.classify(key)
        if tier is None:
            return LicenseStatus.INVALID
        if not tier.expires or expires_at is None:
            return LicenseStatus.VALID

        if now <= expires_at:
            return LicenseStatus.VALID
        if now <= expires_at + self.grace_period:
            return LicenseStatus.GRACE_PERIOD
        return LicenseStatus.EXPIRED

    @staticmethod
    def is_usable(status: LicenseStatus) -> bool:
        """Check whether a status grants feature access."""
        return status.is_usable

    @staticmethod
    def expiry_for(tier: LicenseTier, issued_at: datetime) -> Optional[datetime]:
        """
        Compute the expiry set when a key is issued.

        Args:
            tier: Key tier
            issued_at: Issuance time

        Returns:
            One year after issuance for paid keys, None otherwise
        """
        if tier.expires:
            return issued_at + PAID_TERM
        return None

    @staticmethod
    def days_until_expiry(record: Optional[LicenseRecord], now: datetime) -> Optional[int]:
        """
        Whole days until expiry, rounded up; negative once expired.

        Returns:
            Number of days or None when the license does not expire
        """
        if record is None or record.expires_at is None:
            return None
        remaining = (record.expires_at - now).total_seconds() / 86400
        return math.ceil(remaining)
