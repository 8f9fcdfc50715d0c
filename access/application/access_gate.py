"""
Access Gate application service.

The single entry point request handlers call before opening a protected
document or rendering a licensed feature. It owns no state; every
decision is composed from the license evaluator, the rate limiter and
the token store it was built with.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from access.application.access_decision import AccessDecision
from access_tokens.domain.services import AccessTokenStore
from core.domain.clock import Clock
from core.domain.value_objects import DenialReason
from core.metrics import access_denials_total
from licenses.domain.services import LicenseEvaluator
from licenses.ports.license_repository import LicenseRepository
from ratelimits.domain.services import RateLimiter

logger = logging.getLogger(__name__)

COMPONENT = "access_gate"

PASSWORD_VERIFY_ACTION = "password_verify"
ACCESS_TOKEN_ACTION = "access_token"

# Lookups that look like probing count against the caller's budget
_PROBE_REASONS = (DenialReason.NOT_FOUND, DenialReason.WRONG_TARGET)


class AccessGate:
    """Facade composing license, rate limit and token decisions."""

    def __init__(
        self,
        evaluator: LicenseEvaluator,
        license_repository: LicenseRepository,
        rate_limiter: RateLimiter,
        token_store: AccessTokenStore,
        clock: Clock,
        licensed_product: str = "pro_plus",
    ):
        """
        Initialize gate.

        Args:
            evaluator: Pure license evaluator
            license_repository: Source of the stored license record
            rate_limiter: Attempt throttling service
            token_store: Share-link token service
            clock: Time source
            licensed_product: Product whose license unlocks premium features
        """
        self.evaluator = evaluator
        self.license_repository = license_repository
        self.rate_limiter = rate_limiter
        self.token_store = token_store
        self.clock = clock
        self.licensed_product = licensed_product

    async def check_feature(self, now: Optional[datetime] = None) -> AccessDecision:
        """
        Decide whether licensed features are available.

        The status is re-derived on every call and never written back.

        Args:
            now: Decision time (defaults to the clock)

        Returns:
            AccessDecision carrying the derived license status
        """
        now = now or self.clock.now()
        record = await self.license_repository.find_by_product(self.licensed_product)
        status = self.evaluator.evaluate(record, now)

        if not self.evaluator.is_usable(status):
            return self._deny(DenialReason.LICENSE_INACTIVE, license_status=status)
        return AccessDecision.allow(license_status=status)

    async def verify_password(
        self,
        target_id: int,
        client_address: str,
        password_valid: bool,
        now: Optional[datetime] = None,
    ) -> AccessDecision:
        """
        Throttle and record a password attempt for a protected document.

        The caller decides whether the password is correct. The attempt
        is reserved from the budget before its outcome is known, so
        concurrent guesses cannot exceed it. A blocked caller is denied
        without touching the counter.

        Args:
            target_id: Document ID
            client_address: Client address
            password_valid: Outcome of the caller's password comparison
            now: Attempt time (defaults to the clock)

        Returns:
            AccessDecision
        """
        now = now or self.clock.now()
        limit = await self.rate_limiter.reserve_attempt(
            PASSWORD_VERIFY_ACTION, client_address, target_id, now=now
        )
        if not limit.allowed:
            return self._deny(
                DenialReason.RATE_LIMITED, retry_after_seconds=limit.retry_after_seconds
            )

        if not password_valid:
            return self._deny(DenialReason.INVALID_CREDENTIALS)

        await self.rate_limiter.record_attempt(
            PASSWORD_VERIFY_ACTION, client_address, target_id, success=True, now=now
        )
        return AccessDecision.allow()

    async def resolve_share_link(
        self,
        secret: str,
        target_id: int,
        client_address: str,
        now: Optional[datetime] = None,
    ) -> AccessDecision:
        """
        Validate a share-link secret for a document and consume one use.

        Args:
            secret: Plaintext secret from the link
            target_id: Document the link is being opened for
            client_address: Client address
            now: Request time (defaults to the clock)

        Returns:
            AccessDecision carrying the token snapshot on success
        """
        now = now or self.clock.now()
        limit = await self.rate_limiter.reserve_attempt(
            ACCESS_TOKEN_ACTION, client_address, target_id, now=now
        )
        if not limit.allowed:
            return self._deny(
                DenialReason.RATE_LIMITED, retry_after_seconds=limit.retry_after_seconds
            )

        result = await self.token_store.validate_and_consume(secret, target_id, now=now)
        if result.valid:
            await self.rate_limiter.record_attempt(
                ACCESS_TOKEN_ACTION, client_address, target_id, success=True, now=now
            )
            return AccessDecision.allow(token=result.token)

        if result.reason not in _PROBE_REASONS:
            # A real but dead token is not a guess
            await self.rate_limiter.release_attempt(ACCESS_TOKEN_ACTION, client_address, target_id)
        return self._deny(result.reason)

    async def issue_share_link(
        self,
        target_id: int,
        ttl_seconds: Optional[int] = None,
        max_uses: int = 0,
        issued_by: str = "",
        now: Optional[datetime] = None,
    ) -> AccessDecision:
        """
        Issue a share link. Requires a usable license.

        Args:
            target_id: Document the link grants access to
            ttl_seconds: Lifetime (defaults to the configured TTL)
            max_uses: Allowed uses, 0 for unlimited
            issued_by: Audit identifier of the issuer
            now: Issuance time (defaults to the clock)

        Returns:
            AccessDecision carrying the issued secret on success

        Raises:
            ValueError: If ttl_seconds or max_uses is out of range
        """
        now = now or self.clock.now()
        feature = await self.check_feature(now=now)
        if not feature.allowed:
            return feature

        issued = await self.token_store.issue(
            target_id,
            ttl_seconds=ttl_seconds,
            max_uses=max_uses,
            issued_by=issued_by,
            now=now,
        )
        return AccessDecision.allow(
            license_status=feature.license_status, token=issued.token, issued=issued
        )

    async def revoke_share_link(self, secret: str) -> bool:
        """
        Delete a share link.

        Args:
            secret: Plaintext secret

        Returns:
            True if a token was deleted
        """
        return await self.token_store.revoke(secret)

    async def run_maintenance(
        self, now: Optional[datetime] = None, older_than_seconds: Optional[int] = None
    ) -> Dict[str, int]:
        """
        Sweep dead tokens and stale rate limit counters.

        Args:
            now: Current time (defaults to the clock)
            older_than_seconds: Rate limit retention override

        Returns:
            Removed row counts keyed by kind
        """
        now = now or self.clock.now()
        tokens = await self.token_store.sweep_expired(now=now)
        rate_limits = await self.rate_limiter.cleanup(older_than_seconds, now=now)
        logger.info(
            "Maintenance complete: %d tokens, %d rate limit records removed",
            tokens,
            rate_limits,
        )
        return {"access_tokens": tokens, "rate_limits": rate_limits}

    def _deny(self, reason: DenialReason, **kwargs) -> AccessDecision:
        access_denials_total.labels(component=COMPONENT, reason=reason.value).inc()
        if reason is DenialReason.RATE_LIMITED:
            logger.warning(
                "Access denied: %s (retry after %ss)",
                reason.value,
                kwargs.get("retry_after_seconds", 0),
            )
        return AccessDecision.deny(reason, **kwargs)
