"""
License manager application service.

Operator-facing operations on the stored license records: activate,
deactivate, inspect and refresh the cached status.
"""
import logging
from datetime import datetime
from typing import Optional

from core.domain.clock import Clock
from core.domain.exceptions import InvalidLicenseKeyError
from core.domain.value_objects import LicenseStatus
from licenses.application.dto.license_dto import LicenseInfoDTO
from licenses.domain.license import LicenseRecord
from licenses.domain.services import LicenseEvaluator, mask_license_key
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class LicenseManager:
    """Application service for license records."""

    def __init__(
        self,
        repository: LicenseRepository,
        evaluator: LicenseEvaluator,
        clock: Clock,
    ):
        """
        Initialize manager.

        Args:
            repository: License persistence port
            evaluator: Pure status evaluator
            clock: Time source
        """
        self.repository = repository
        self.evaluator = evaluator
        self.clock = clock

    async def activate(
        self, product: str, key: str, now: Optional[datetime] = None
    ) -> LicenseInfoDTO:
        """
        Store a license key for a product.

        Args:
            product: Product slug
            key: Raw license key entered by the operator
            now: Activation time (defaults to the clock)

        Returns:
            LicenseInfoDTO for the stored record

        Raises:
            InvalidLicenseKeyError: If the key matches no known format
        """
        now = now or self.clock.now()
        tier = self.evaluator.classify(key)
        if tier is None:
            logger.warning(
                "Rejected license activation for %s: %s",
                product,
                mask_license_key(key if isinstance(key, str) else ""),
            )
            raise InvalidLicenseKeyError()

        expires_at = self.evaluator.expiry_for(tier, now)
        status = self.evaluator.evaluate_key(key, expires_at, now)
        record = LicenseRecord.create(
            product=product,
            key=key,
            status=status,
            expires_at=expires_at,
            activated_at=now,
        )
        saved = await self.repository.save(record)

        logger.info(
            "License activated for %s (tier=%s, expires_at=%s)",
            product,
            tier.value,
            expires_at.isoformat() if expires_at else None,
        )
        return self._to_info(saved, now)

    async def deactivate(
        self, product: str, now: Optional[datetime] = None
    ) -> LicenseInfoDTO:
        """
        Remove the key for a product, leaving an inactive record.

        Args:
            product: Product slug
            now: Deactivation time (defaults to the clock)

        Returns:
            LicenseInfoDTO for the inactive record
        """
        now = now or self.clock.now()
        saved = await self.repository.save(LicenseRecord.inactive(product, at=now))
        logger.info("License deactivated for %s", product)
        return self._to_info(saved, now)

    async def get_status(
        self, product: str, now: Optional[datetime] = None
    ) -> LicenseStatus:
        """
        Evaluate the stored license. Never writes.

        Args:
            product: Product slug
            now: Evaluation time (defaults to the clock)

        Returns:
            Derived LicenseStatus
        """
        now = now or self.clock.now()
        record = await self.repository.find_by_product(product)
        return self.evaluator.evaluate(record, now)

    async def get_info(
        self, product: str, now: Optional[datetime] = None
    ) -> LicenseInfoDTO:
        """
        Describe the stored license.

        Args:
            product: Product slug
            now: Evaluation time (defaults to the clock)

        Returns:
            LicenseInfoDTO (inactive when nothing is stored)
        """
        now = now or self.clock.now()
        record = await self.repository.find_by_product(product)
        if record is None:
            record = LicenseRecord.inactive(product)
        return self._to_info(record, now)

    async def refresh_cached_status(
        self, product: str, now: Optional[datetime] = None
    ) -> bool:
        """
        Write the derived status back to the record when it has drifted.

        Args:
            product: Product slug
            now: Evaluation time (defaults to the clock)

        Returns:
            True if the stored status was updated
        """
        now = now or self.clock.now()
        record = await self.repository.find_by_product(product)
        if record is None:
            return False

        status = self.evaluator.evaluate(record, now)
        if status == record.status:
            return False

        updated = await self.repository.save_status(product, status, now)
        if updated:
            logger.info(
                "License status for %s changed: %s -> %s",
                product,
                record.status.value,
                status.value,
            )
        return updated

    def _to_info(self, record: LicenseRecord, now: datetime) -> LicenseInfoDTO:
        status = self.evaluator.evaluate(record, now)
        tier = self.evaluator.classify(record.key) if record.key else None
        expires_at = record.expires_at if tier is not None and tier.expires else None
        return LicenseInfoDTO(
            product=record.product,
            masked_key=mask_license_key(record.key),
            status=status,
            is_usable=status.is_usable,
            tier=tier,
            expires_at=expires_at,
            activated_at=record.activated_at,
            days_until_expiry=(
                self.evaluator.days_until_expiry(record, now) if expires_at else None
            ),
        )
