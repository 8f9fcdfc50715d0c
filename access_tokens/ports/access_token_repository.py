"""
Access token repository port (interface).

This defines the contract for token persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from access_tokens.domain.access_token import AccessToken


class AccessTokenRepository(ABC):
    """
    Abstract repository for AccessToken entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def add(self, token: AccessToken) -> AccessToken:
        """
        Persist a newly issued token.

        Args:
            token: AccessToken entity

        Returns:
            Saved AccessToken
        """
        pass

    @abstractmethod
    async def get(self, token_hash: str) -> Optional[AccessToken]:
        """
        Find a token by the digest of its secret.

        Args:
            token_hash: SHA-256 hex digest of the secret

        Returns:
            AccessToken or None if not found
        """
        pass

    @abstractmethod
    async def try_consume(self, token_hash: str, now: datetime) -> Optional[AccessToken]:
        """
        Atomically add one to use_count while the token is usable at `now`.

        The update only applies if expires_at > now and either max_uses
        is 0 or use_count < max_uses.

        Args:
            token_hash: Token digest
            now: Current time

        Returns:
            The token as left by this use, or None if it was not usable
        """
        pass

    @abstractmethod
    async def delete(self, token_hash: str) -> bool:
        """
        Delete a token.

        Args:
            token_hash: Token digest

        Returns:
            True if a token was deleted
        """
        pass

    @abstractmethod
    async def delete_dead(self, now: datetime) -> int:
        """
        Delete every expired or exhausted token.

        Args:
            now: Current time

        Returns:
            Number of tokens deleted
        """
        pass

    @abstractmethod
    async def list_for_target(self, target_id: int) -> List[AccessToken]:
        """
        List tokens issued for a target, newest first.

        Args:
            target_id: Target (document) ID

        Returns:
            List of AccessToken entities
        """
        pass
