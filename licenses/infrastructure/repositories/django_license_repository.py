"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import LicenseStatus
from core.infrastructure.database import translate_database_errors
from licenses.domain.license import LicenseRecord
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository

COMPONENT = "licenses"


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Implements repository interface
    """

    def _to_domain(self, model: LicenseModel) -> LicenseRecord:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            LicenseRecord domain entity
        """
        try:
            status = LicenseStatus(model.status)
        except ValueError:
            status = LicenseStatus.INACTIVE

        return LicenseRecord(
            product=model.product,
            key=model.key or "",
            status=status,
            expires_at=model.expires_at,
            activated_at=model.activated_at,
            updated_at=model.updated_at,
        )

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def find_by_product(self, product: str) -> Optional[LicenseRecord]:
        """
        Find the license record for a product.

        Args:
            product: Product slug

        Returns:
            LicenseRecord or None if not found
        """
        try:
            model = LicenseModel.objects.get(product=product)  # pylint: disable=no-member
            return self._to_domain(model)
        except LicenseModel.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def save(self, record: LicenseRecord) -> LicenseRecord:
        """
        Insert or replace the record for record.product.

        Args:
            record: LicenseRecord to save

        Returns:
            Saved LicenseRecord
        """
        # pylint: disable=no-member
        model, _ = LicenseModel.objects.update_or_create(
            product=record.product,
            defaults={
                "key": record.key,
                "status": record.status.value,
                "expires_at": record.expires_at,
                "activated_at": record.activated_at,
                "updated_at": record.updated_at,
            },
        )
        return self._to_domain(model)

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def save_status(self, product: str, status: LicenseStatus, updated_at: datetime) -> bool:
        """
        Write back a derived status without touching the key.

        Args:
            product: Product slug
            status: Status to cache
            updated_at: Time of the evaluation

        Returns:
            True if a record was updated
        """
        updated = LicenseModel.objects.filter(product=product).update(  # pylint: disable=no-member
            status=status.value, updated_at=updated_at
        )
        return updated > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def list_all(self) -> List[LicenseRecord]:
        """
        List every stored license record.

        Returns:
            List of LicenseRecord entities
        """
        return [self._to_domain(model) for model in LicenseModel.objects.all()]  # pylint: disable=no-member

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def delete(self, product: str) -> bool:
        """
        Delete the record for a product.

        Args:
            product: Product slug

        Returns:
            True if a record was deleted
        """
        deleted, _ = LicenseModel.objects.filter(product=product).delete()  # pylint: disable=no-member
        return deleted > 0
