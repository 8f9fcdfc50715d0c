"""
Rate limiter domain service.

Counts attempts per (action, client, target) inside a fixed window and
locks the identifier out once the window's budget is spent.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from core.conf import DEFAULT_POLICY_NAME, AccessControlConfig
from core.domain.clock import Clock
from core.domain.digest import digest, normalize_client_address
from core.domain.exceptions import ConcurrencyConflictError, StorageUnavailableError
from core.domain.value_objects import RateLimitPolicy, StorageFailurePolicy
from core.metrics import (
    fail_open_decisions_total,
    maintenance_removed_total,
    rate_limit_blocks_total,
)
from ratelimits.domain.rate_limit import RateLimitDecision, RateLimitRecord
from ratelimits.ports.rate_limit_repository import RateLimitRepository

logger = logging.getLogger(__name__)

COMPONENT = "ratelimits"


class RateLimiter:
    """Domain service for time-windowed attempt throttling."""

    def __init__(
        self,
        repository: RateLimitRepository,
        clock: Clock,
        config: Optional[AccessControlConfig] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            repository: Attempt counter persistence port
            clock: Time source
            config: Policies, retention and storage failure policy
        """
        self.repository = repository
        self.clock = clock
        self.config = config or AccessControlConfig()

    @staticmethod
    def identifier_for(action: str, client_address: str, target_id: int = 0) -> str:
        """
        Digest naming an (action, client, target) triple.

        Args:
            action: Action name
            client_address: Client address (normalized before hashing)
            target_id: Target the action applies to

        Returns:
            64-character hex identifier
        """
        return digest(action, normalize_client_address(client_address), int(target_id))

    def policy_for(self, action: str) -> RateLimitPolicy:
        """Policy for an action, falling back to the default profile."""
        return self.config.policy_for(action)

    async def check_limit(
        self,
        action: str,
        client_address: str,
        target_id: int = 0,
        now: Optional[datetime] = None,
    ) -> RateLimitDecision:
        """
        Decide whether the caller may attempt the action now.

        An active block wins over every other state. The only write is
        the transition into the blocked state.

        Args:
            action: Action name
            client_address: Client address
            target_id: Target the action applies to
            now: Decision time (defaults to the clock)

        Returns:
            RateLimitDecision

        Raises:
            StorageUnavailableError: If storage fails and the policy is fail_closed
        """
        now = now or self.clock.now()
        policy = self.policy_for(action)
        identifier = self.identifier_for(action, client_address, target_id)

        try:
            record = await self.repository.get(identifier)
            if record is None:
                return RateLimitDecision.allow(policy.max_attempts)

            if record.is_blocked(now):
                return RateLimitDecision.deny(record.retry_after_seconds(now))

            if record.window_expired(policy, now):
                return RateLimitDecision.allow(policy.max_attempts)

            if record.attempts >= policy.max_attempts:
                decision = await self._block(record, policy, now)
                return decision or RateLimitDecision.allow(policy.max_attempts)

            return RateLimitDecision.allow(policy.max_attempts - record.attempts)
        except StorageUnavailableError as e:
            self._handle_storage_failure("check_limit", e)
            return RateLimitDecision.allow(policy.max_attempts)

    async def record_attempt(
        self,
        action: str,
        client_address: str,
        target_id: int = 0,
        success: bool = False,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Record the outcome of an attempt.

        A success deletes the record. A failure creates it, starts a new
        window if the old one has expired, or adds one to the counter.
        A failure during an active block only counts; it never moves
        blocked_until.

        Args:
            action: Action name
            client_address: Client address
            target_id: Target the action applies to
            success: Whether the attempt succeeded
            now: Attempt time (defaults to the clock)

        Raises:
            StorageUnavailableError: If storage fails and the policy is fail_closed
        """
        now = now or self.clock.now()
        identifier = self.identifier_for(action, client_address, target_id)

        try:
            if success:
                await self.repository.delete(identifier)
                return
            await self._record_failure(identifier, action, int(target_id), now)
        except StorageUnavailableError as e:
            self._handle_storage_failure("record_attempt", e)

    async def reserve_attempt(
        self,
        action: str,
        client_address: str,
        target_id: int = 0,
        now: Optional[datetime] = None,
    ) -> RateLimitDecision:
        """
        Check the limit and count the attempt in one step.

        The attempt is taken from the budget before the caller evaluates
        it, so concurrent callers on one identifier can never get more
        than max_attempts tries per window between them. A caller whose
        attempt then succeeds clears the record with
        record_attempt(success=True); one whose attempt should not count
        gives it back with release_attempt.

        Args:
            action: Action name
            client_address: Client address
            target_id: Target the action applies to
            now: Attempt time (defaults to the clock)

        Returns:
            RateLimitDecision; allowed means an attempt was reserved

        Raises:
            ConcurrencyConflictError: If the reservation kept losing races
            StorageUnavailableError: If storage fails and the policy is fail_closed
        """
        now = now or self.clock.now()
        policy = self.policy_for(action)
        identifier = self.identifier_for(action, client_address, target_id)

        try:
            return await self._reserve(identifier, action, int(target_id), policy, now)
        except StorageUnavailableError as e:
            self._handle_storage_failure("reserve_attempt", e)
            return RateLimitDecision.allow(policy.max_attempts)

    async def release_attempt(
        self, action: str, client_address: str, target_id: int = 0
    ) -> None:
        """
        Give back an attempt taken by reserve_attempt.

        Args:
            action: Action name
            client_address: Client address
            target_id: Target the action applies to

        Raises:
            StorageUnavailableError: If storage fails and the policy is fail_closed
        """
        identifier = self.identifier_for(action, client_address, target_id)
        try:
            await self.repository.release_attempt(identifier)
        except StorageUnavailableError as e:
            self._handle_storage_failure("release_attempt", e)

    async def cleanup(
        self, older_than_seconds: Optional[int] = None, now: Optional[datetime] = None
    ) -> int:
        """
        Delete counters whose window and block both ended before the retention cut-off.

        Args:
            older_than_seconds: Retention (defaults to the configured value)
            now: Current time (defaults to the clock)

        Returns:
            Number of records removed

        Raises:
            StorageUnavailableError: If storage fails and the policy is fail_closed
        """
        now = now or self.clock.now()
        if older_than_seconds is None:
            older_than_seconds = self.config.rate_limit_retention_seconds
        if older_than_seconds < 0:
            raise ValueError("older_than_seconds cannot be negative")

        threshold = now - timedelta(seconds=older_than_seconds)
        try:
            removed = await self.repository.delete_stale(
                threshold,
                self._window_seconds(),
                self.policy_for(DEFAULT_POLICY_NAME).window_seconds,
            )
        except StorageUnavailableError as e:
            self._handle_storage_failure("cleanup", e)
            return 0

        if removed:
            maintenance_removed_total.labels(kind=COMPONENT).inc(removed)
            logger.info("Removed %d stale rate limit records", removed)
        return removed

    async def _record_failure(
        self, identifier: str, action: str, target_id: int, now: datetime
    ) -> None:
        policy = self.policy_for(action)

        for _ in range(self.config.conflict_retry_limit):
            record = await self.repository.get(identifier)

            if record is None:
                created = await self.repository.add(
                    RateLimitRecord.first_attempt(identifier, action, target_id, now)
                )
                if created:
                    return
                continue

            if not record.is_blocked(now) and record.window_expired(policy, now):
                if await self.repository.reset_window_if(identifier, record.window_start, now):
                    return
                continue

            if await self.repository.increment_attempts(identifier):
                return

        raise ConcurrencyConflictError(
            f"Could not record attempt for '{action}' after "
            f"{self.config.conflict_retry_limit} retries",
            component=COMPONENT,
        )

    async def _reserve(
        self,
        identifier: str,
        action: str,
        target_id: int,
        policy: RateLimitPolicy,
        now: datetime,
    ) -> RateLimitDecision:
        for _ in range(self.config.conflict_retry_limit):
            record = await self.repository.get(identifier)

            if record is None:
                created = await self.repository.add(
                    RateLimitRecord.first_attempt(identifier, action, target_id, now)
                )
                if created:
                    return RateLimitDecision.allow(policy.max_attempts - 1)
                continue

            if record.is_blocked(now):
                return RateLimitDecision.deny(record.retry_after_seconds(now))

            if record.window_expired(policy, now):
                if await self.repository.reset_window_if(identifier, record.window_start, now):
                    return RateLimitDecision.allow(policy.max_attempts - 1)
                continue

            if record.attempts >= policy.max_attempts:
                decision = await self._block(record, policy, now)
                if decision is not None:
                    return decision
                continue

            if await self.repository.reserve_attempt(identifier, policy, now):
                return RateLimitDecision.allow(max(0, policy.max_attempts - record.attempts - 1))

        raise ConcurrencyConflictError(
            f"Could not reserve attempt for '{action}' after "
            f"{self.config.conflict_retry_limit} retries",
            component=COMPONENT,
        )

    def _window_seconds(self) -> Dict[str, int]:
        return {
            action: policy.window_seconds
            for action, policy in self.config.rate_limits.items()
            if action != DEFAULT_POLICY_NAME
        }

    async def _block(
        self, record: RateLimitRecord, policy: RateLimitPolicy, now: datetime
    ) -> Optional[RateLimitDecision]:
        blocked_until = now + timedelta(seconds=policy.block_seconds)
        if await self.repository.block_if_unblocked(record.identifier, blocked_until, now):
            rate_limit_blocks_total.labels(action=record.action).inc()
            logger.warning(
                "Rate limit exceeded for action '%s' on target %s; blocked for %ds",
                record.action,
                record.target_id,
                policy.block_seconds,
            )
            return RateLimitDecision.deny(policy.block_seconds)

        # Another caller changed the record first; report what it stored.
        current = await self.repository.get(record.identifier)
        if current is not None and current.is_blocked(now):
            return RateLimitDecision.deny(current.retry_after_seconds(now))
        return None

    def _handle_storage_failure(self, operation: str, error: StorageUnavailableError) -> None:
        if self.config.storage_failure_policy is StorageFailurePolicy.FAIL_CLOSED:
            raise error
        fail_open_decisions_total.labels(component=COMPONENT).inc()
        logger.warning(
            "Rate limiter storage unavailable during %s; failing open: %s",
            operation,
            error.message,
        )
