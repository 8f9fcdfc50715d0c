"""
In-memory implementation of AccessTokenRepository port.

Used by tests and single-process deployments.
"""
import threading
from datetime import datetime
from typing import Dict, List, Optional

from access_tokens.domain.access_token import AccessToken
from access_tokens.ports.access_token_repository import AccessTokenRepository


class InMemoryAccessTokenRepository(AccessTokenRepository):
    """Dict-backed AccessTokenRepository guarded by a lock."""

    def __init__(self):
        self._tokens: Dict[str, AccessToken] = {}
        self._lock = threading.Lock()

    async def add(self, token: AccessToken) -> AccessToken:
        with self._lock:
            if token.token_hash in self._tokens:
                raise ValueError("Token hash already exists")
            self._tokens[token.token_hash] = token
            return token

    async def get(self, token_hash: str) -> Optional[AccessToken]:
        with self._lock:
            return self._tokens.get(token_hash)

    async def try_consume(self, token_hash: str, now: datetime) -> Optional[AccessToken]:
        with self._lock:
            token = self._tokens.get(token_hash)
            if token is None or not token.is_usable(now):
                return None
            consumed = token.consumed()
            self._tokens[token_hash] = consumed
            return consumed

    async def delete(self, token_hash: str) -> bool:
        with self._lock:
            return self._tokens.pop(token_hash, None) is not None

    async def delete_dead(self, now: datetime) -> int:
        with self._lock:
            dead = [h for h, token in self._tokens.items() if not token.is_usable(now)]
            for token_hash in dead:
                del self._tokens[token_hash]
            return len(dead)

    async def list_for_target(self, target_id: int) -> List[AccessToken]:
        with self._lock:
            tokens = [t for t in self._tokens.values() if t.target_id == target_id]
        return sorted(tokens, key=lambda t: t.created_at, reverse=True)
