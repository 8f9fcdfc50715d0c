"""
License DTOs for operator-facing responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.value_objects import LicenseStatus, LicenseTier


@dataclass(frozen=True)
class LicenseInfoDTO:
    """DTO for license information. The raw key is never exposed."""

    product: str
    masked_key: str
    status: LicenseStatus
    is_usable: bool
    tier: Optional[LicenseTier]
    expires_at: Optional[datetime]
    activated_at: Optional[datetime]
    days_until_expiry: Optional[int]

    @property
    def is_active(self) -> bool:
        """A key is stored for the product."""
        return self.status is not LicenseStatus.INACTIVE
