"""
Rate limit repository port (interface).

This defines the contract for attempt-counter persistence.
Every mutating method is a single atomic statement in the store so that
concurrent callers acting on one identifier cannot lose updates.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Mapping, Optional

from core.domain.value_objects import RateLimitPolicy
from ratelimits.domain.rate_limit import RateLimitRecord


class RateLimitRepository(ABC):
    """
    Abstract repository for RateLimitRecord entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def get(self, identifier: str) -> Optional[RateLimitRecord]:
        """
        Find the record for an identifier.

        Args:
            identifier: Digest of (action, client, target)

        Returns:
            RateLimitRecord or None if not found
        """
        pass

    @abstractmethod
    async def add(self, record: RateLimitRecord) -> bool:
        """
        Insert a record if none exists for its identifier.

        Args:
            record: RateLimitRecord to insert

        Returns:
            True if inserted, False if a record already existed
        """
        pass

    @abstractmethod
    async def increment_attempts(self, identifier: str) -> bool:
        """
        Atomically add one to the attempt counter.

        Args:
            identifier: Record identifier

        Returns:
            True if a record was updated
        """
        pass

    @abstractmethod
    async def reserve_attempt(
        self, identifier: str, policy: RateLimitPolicy, now: datetime
    ) -> bool:
        """
        Atomically add one to the counter while budget remains.

        Only applies if attempts < policy.max_attempts, the window is
        still active at `now` and no block is active at `now`.

        Args:
            identifier: Record identifier
            policy: Policy of the record's action
            now: Current time

        Returns:
            True if this call took an attempt from the budget
        """
        pass

    @abstractmethod
    async def release_attempt(self, identifier: str) -> bool:
        """
        Atomically give back one attempt (attempts - 1, never below 0).

        Args:
            identifier: Record identifier

        Returns:
            True if a record was updated
        """
        pass

    @abstractmethod
    async def reset_window_if(
        self, identifier: str, expected_window_start: datetime, now: datetime
    ) -> bool:
        """
        Start a new window (attempts=1, window_start=now, no block).

        Only applies if window_start still equals expected_window_start
        and no block is active at `now`.

        Args:
            identifier: Record identifier
            expected_window_start: window_start observed by the caller
            now: Start of the new window

        Returns:
            True if the record was reset
        """
        pass

    @abstractmethod
    async def block_if_unblocked(
        self, identifier: str, blocked_until: datetime, now: datetime
    ) -> bool:
        """
        Set blocked_until unless a block is already active at `now`.

        Args:
            identifier: Record identifier
            blocked_until: End of the lockout
            now: Current time

        Returns:
            True if this call set the block
        """
        pass

    @abstractmethod
    async def delete(self, identifier: str) -> bool:
        """
        Delete the record for an identifier.

        Args:
            identifier: Record identifier

        Returns:
            True if a record was deleted
        """
        pass

    @abstractmethod
    async def delete_stale(
        self,
        threshold: datetime,
        window_seconds: Mapping[str, int],
        default_window_seconds: int,
    ) -> int:
        """
        Delete records whose window and block both ended by `threshold`.

        Args:
            threshold: Retention cut-off
            window_seconds: Window length per registered action
            default_window_seconds: Window length for any other action

        Returns:
            Number of records deleted
        """
        pass
