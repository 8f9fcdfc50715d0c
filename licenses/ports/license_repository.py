"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from core.domain.value_objects import LicenseStatus
from licenses.domain.license import LicenseRecord


class LicenseRepository(ABC):
    """
    Abstract repository for LicenseRecord entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def find_by_product(self, product: str) -> Optional[LicenseRecord]:
        """
        Find the license record for a product.

        Args:
            product: Product slug

        Returns:
            LicenseRecord or None if not found
        """
        pass

    @abstractmethod
    async def save(self, record: LicenseRecord) -> LicenseRecord:
        """
        Insert or replace the record for record.product.

        Args:
            record: LicenseRecord to save

        Returns:
            Saved LicenseRecord
        """
        pass

    @abstractmethod
    async def save_status(
        self, product: str, status: LicenseStatus, updated_at: datetime
    ) -> bool:
        """
        Write back a derived status without touching the key.

        Args:
            product: Product slug
            status: Status to cache
            updated_at: Time of the evaluation

        Returns:
            True if a record was updated
        """
        pass

    @abstractmethod
    async def list_all(self) -> List[LicenseRecord]:
        """
        List every stored license record.

        Returns:
            List of LicenseRecord entities
        """
        pass

    @abstractmethod
    async def delete(self, product: str) -> bool:
        """
        Delete the record for a product.

        Args:
            product: Product slug

        Returns:
            True if a record was deleted
        """
        pass
