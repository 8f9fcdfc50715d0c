"""
In-memory implementation of LicenseRepository port.

Used by tests and single-process deployments.
"""
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from core.domain.value_objects import LicenseStatus
from licenses.domain.license import LicenseRecord
from licenses.ports.license_repository import LicenseRepository


class InMemoryLicenseRepository(LicenseRepository):
    """Dict-backed LicenseRepository guarded by a lock."""

    def __init__(self):
        self._records: Dict[str, LicenseRecord] = {}
        self._lock = threading.Lock()

    async def find_by_product(self, product: str) -> Optional[LicenseRecord]:
        with self._lock:
            return self._records.get(product)

    async def save(self, record: LicenseRecord) -> LicenseRecord:
        with self._lock:
            self._records[record.product] = record
            return record

    async def save_status(
        self, product: str, status: LicenseStatus, updated_at: datetime
    ) -> bool:
        with self._lock:
            record = self._records.get(product)
            if record is None:
                return False
            self._records[product] = replace(record, status=status, updated_at=updated_at)
            return True

    async def list_all(self) -> List[LicenseRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.product)

    async def delete(self, product: str) -> bool:
        with self._lock:
            return self._records.pop(product, None) is not None
