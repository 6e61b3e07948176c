"""Keyed, expiring store for TokenSets.

Replaces a process-wide "current refresh token" slot. Tokens are stored
under an explicit key so concurrent runs for different users never see
each other's credentials:

- ``run:<run_id>`` holds the live TokenSet for one pipeline run and is
  discarded when the run ends.
- ``identity:<channel id>`` remembers a refresh-capable TokenSet for a
  verified identity so future runs for the same account can reuse it.

In-memory implementation. Multi-instance deployments need a shared
backend behind the same interface.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from ownerproof.models.tokens import TokenSet

logger = logging.getLogger(__name__)


def run_key(run_id: str) -> str:
    return f"run:{run_id}"


def identity_key(identifier: str) -> str:
    return f"identity:{identifier}"


class TokenStore:
    """Async-safe mapping of key -> (TokenSet, expires_at).

    Parameters
    ----------
    default_ttl:
        Lifetime of an entry in seconds when ``put`` is called without an
        explicit ``ttl``.
    """

    def __init__(self, default_ttl: int = 3600) -> None:
        self._entries: dict[str, tuple[TokenSet, datetime]] = {}
        self._lock = asyncio.Lock()
        self._default_ttl = default_ttl

    async def put(self, key: str, tokens: TokenSet, ttl: int | None = None) -> None:
        """Store *tokens* under *key*, replacing any previous entry.

        Expired entries are dropped on every write so abandoned identities
        do not accumulate.
        """
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(
            seconds=ttl if ttl is not None else self._default_ttl
        )
        async with self._lock:
            purged = self._drop_expired(now)
            self._entries[key] = (tokens, expires_at)
        if purged:
            logger.info("Purged %d expired token sets", purged)
        logger.debug("Stored token set under %s", key)

    async def get(self, key: str) -> TokenSet | None:
        """Return the TokenSet for *key*, or None if absent or expired."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            tokens, expires_at = entry
            if datetime.now(timezone.utc) >= expires_at:
                del self._entries[key]
                logger.debug("Token set under %s expired", key)
                return None
            return tokens

    async def discard(self, key: str) -> bool:
        """Remove *key*. Returns True if an entry was present."""
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        async with self._lock:
            purged = self._drop_expired(datetime.now(timezone.utc))
        if purged:
            logger.info("Purged %d expired token sets", purged)
        return purged

    def _drop_expired(self, now: datetime) -> int:
        # Caller holds the lock.
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
