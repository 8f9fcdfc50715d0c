"""
In-memory implementation of RateLimitRepository port.

Used by tests and single-process deployments. One lock serializes every
operation, which gives the same atomicity as the database adapter.
"""
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Mapping, Optional

from core.domain.value_objects import RateLimitPolicy
from ratelimits.domain.rate_limit import RateLimitRecord
from ratelimits.ports.rate_limit_repository import RateLimitRepository


class InMemoryRateLimitRepository(RateLimitRepository):
    """Dict-backed RateLimitRepository guarded by a lock."""

    def __init__(self):
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    async def get(self, identifier: str) -> Optional[RateLimitRecord]:
        with self._lock:
            return self._records.get(identifier)

    async def add(self, record: RateLimitRecord) -> bool:
        with self._lock:
            if record.identifier in self._records:
                return False
            self._records[record.identifier] = record
            return True

    async def increment_attempts(self, identifier: str) -> bool:
        with self._lock:
            record = self._records.get(identifier)
            if record is None:
                return False
            self._records[identifier] = replace(record, attempts=record.attempts + 1)
            return True

    async def reserve_attempt(
        self, identifier: str, policy: RateLimitPolicy, now: datetime
    ) -> bool:
        with self._lock:
            record = self._records.get(identifier)
            if record is None or record.attempts >= policy.max_attempts:
                return False
            if record.is_blocked(now) or record.window_expired(policy, now):
                return False
            self._records[identifier] = replace(record, attempts=record.attempts + 1)
            return True

    async def release_attempt(self, identifier: str) -> bool:
        with self._lock:
            record = self._records.get(identifier)
            if record is None or record.attempts == 0:
                return False
            self._records[identifier] = replace(record, attempts=record.attempts - 1)
            return True

    async def reset_window_if(
        self, identifier: str, expected_window_start: datetime, now: datetime
    ) -> bool:
        with self._lock:
            record = self._records.get(identifier)
            if record is None or record.window_start != expected_window_start:
                return False
            if record.is_blocked(now):
                return False
            self._records[identifier] = replace(
                record, attempts=1, window_start=now, blocked_until=None
            )
            return True

    async def block_if_unblocked(
        self, identifier: str, blocked_until: datetime, now: datetime
    ) -> bool:
        with self._lock:
            record = self._records.get(identifier)
            if record is None or record.is_blocked(now):
                return False
            self._records[identifier] = record.with_blocked_until(blocked_until)
            return True

    async def delete(self, identifier: str) -> bool:
        with self._lock:
            return self._records.pop(identifier, None) is not None

    async def delete_stale(
        self,
        threshold: datetime,
        window_seconds: Mapping[str, int],
        default_window_seconds: int,
    ) -> int:
        with self._lock:
            stale = [
                identifier
                for identifier, record in self._records.items()
                if record.is_stale(
                    threshold, window_seconds.get(record.action, default_window_seconds)
                )
            ]
            for identifier in stale:
                del self._records[identifier]
            return len(stale)
