"""
Access token domain service.

Issues opaque share-link secrets and validates them with an atomic
use-count increment. Storage failures always propagate: an outage never
grants access.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from access_tokens.domain.access_token import (
    AccessToken,
    AccessTokenInfo,
    IssuedAccessToken,
    TokenValidationResult,
)
from access_tokens.ports.access_token_repository import AccessTokenRepository
from core.conf import AccessControlConfig
from core.domain.clock import Clock
from core.domain.digest import digest
from core.domain.value_objects import DenialReason
from core.metrics import (
    access_denials_total,
    access_tokens_consumed_total,
    access_tokens_issued_total,
    maintenance_removed_total,
)

logger = logging.getLogger(__name__)

COMPONENT = "access_tokens"

# 32 random bytes = 256 bits before hex encoding
SECRET_BYTES = 32


def hash_secret(secret: str) -> str:
    """Lookup key for a plaintext secret."""
    return digest(secret)


class AccessTokenStore:
    """Domain service for the access token lifecycle."""

    def __init__(
        self,
        repository: AccessTokenRepository,
        clock: Clock,
        config: Optional[AccessControlConfig] = None,
    ):
        """
        Initialize token store.

        Args:
            repository: Token persistence port
            clock: Time source
            config: Default TTL
        """
        self.repository = repository
        self.clock = clock
        self.config = config or AccessControlConfig()

    async def issue(
        self,
        target_id: int,
        ttl_seconds: Optional[int] = None,
        max_uses: int = 0,
        issued_by: str = "",
        now: Optional[datetime] = None,
    ) -> IssuedAccessToken:
        """
        Issue a new token for a target.

        Args:
            target_id: Target (document) the token grants access to
            ttl_seconds: Lifetime (defaults to the configured TTL, 24h)
            max_uses: Allowed validations, 0 for unlimited
            issued_by: Audit identifier of the issuer
            now: Issuance time (defaults to the clock)

        Returns:
            IssuedAccessToken carrying the only copy of the secret

        Raises:
            ValueError: If ttl_seconds or max_uses is out of range
        """
        now = now or self.clock.now()
        if ttl_seconds is None:
            ttl_seconds = self.config.access_token_default_ttl_seconds
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be at least 1")
        if max_uses < 0:
            raise ValueError("max_uses cannot be negative")

        secret = secrets.token_hex(SECRET_BYTES)
        token = AccessToken(
            token_hash=hash_secret(secret),
            target_id=int(target_id),
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
            max_uses=max_uses,
            use_count=0,
            issued_by=issued_by or "",
        )
        saved = await self.repository.add(token)

        access_tokens_issued_total.inc()
        logger.info(
            "Access token issued for target %s (expires_at=%s, max_uses=%d, issued_by=%s)",
            saved.target_id,
            saved.expires_at.isoformat(),
            saved.max_uses,
            saved.issued_by or "-",
        )
        return IssuedAccessToken(secret=secret, token=saved.to_info())

    async def validate_and_consume(
        self, secret: str, expected_target_id: int, now: Optional[datetime] = None
    ) -> TokenValidationResult:
        """
        Validate a secret for a target and record one use.

        The use is recorded by a single conditional update that only
        succeeds while the token is still usable, so concurrent callers
        can never consume more than max_uses between them. Expired and
        exhausted tokens are deleted on sight.

        Args:
            secret: Plaintext secret presented by the caller
            expected_target_id: Target the caller is trying to open
            now: Validation time (defaults to the clock)

        Returns:
            TokenValidationResult

        Raises:
            StorageUnavailableError: If storage fails
        """
        now = now or self.clock.now()
        if not secret or not isinstance(secret, str):
            return self._deny(DenialReason.NOT_FOUND)

        token_hash = hash_secret(secret)
        token = await self.repository.get(token_hash)
        if token is None:
            return self._deny(DenialReason.NOT_FOUND)

        if token.target_id != int(expected_target_id):
            return self._deny(DenialReason.WRONG_TARGET)

        if not token.is_usable(now):
            return await self._purge(token, now)

        consumed = await self.repository.try_consume(token_hash, now)
        if consumed is not None:
            access_tokens_consumed_total.inc()
            return TokenValidationResult.success(consumed.to_info())

        # Another caller took the last use, or the token was revoked meanwhile
        current = await self.repository.get(token_hash)
        if current is None:
            return self._deny(DenialReason.NOT_FOUND)
        return await self._purge(current, now)

    async def peek(self, secret: str) -> Optional[AccessTokenInfo]:
        """
        Look up a token without consuming a use.

        Args:
            secret: Plaintext secret

        Returns:
            AccessTokenInfo or None if not found
        """
        if not secret or not isinstance(secret, str):
            return None
        token = await self.repository.get(hash_secret(secret))
        return token.to_info() if token else None

    async def revoke(self, secret: str) -> bool:
        """
        Delete a token on demand.

        Args:
            secret: Plaintext secret

        Returns:
            True if a token was deleted
        """
        if not secret or not isinstance(secret, str):
            return False
        revoked = await self.repository.delete(hash_secret(secret))
        if revoked:
            logger.info("Access token revoked")
        return revoked

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete every expired or exhausted token.

        Args:
            now: Current time (defaults to the clock)

        Returns:
            Number of tokens removed
        """
        now = now or self.clock.now()
        removed = await self.repository.delete_dead(now)
        if removed:
            maintenance_removed_total.labels(kind=COMPONENT).inc(removed)
            logger.info("Swept %d dead access tokens", removed)
        return removed

    async def list_for_target(self, target_id: int) -> List[AccessTokenInfo]:
        """
        List tokens issued for a target, newest first.

        Args:
            target_id: Target (document) ID

        Returns:
            List of AccessTokenInfo snapshots
        """
        tokens = await self.repository.list_for_target(int(target_id))
        return [token.to_info() for token in tokens]

    def _deny(self, reason: DenialReason) -> TokenValidationResult:
        access_denials_total.labels(component=COMPONENT, reason=reason.value).inc()
        logger.debug("Access token denied: %s", reason.value)
        return TokenValidationResult.deny(reason)

    async def _purge(self, token: AccessToken, now: datetime) -> TokenValidationResult:
        await self.repository.delete(token.token_hash)
        if token.is_expired(now):
            return self._deny(DenialReason.EXPIRED)
        return self._deny(DenialReason.EXHAUSTED)
