"""Namespaced key store for rendered artifacts.

Entries are JSON envelopes (see :mod:`basechat_cache.cache.entry`) written
with an absolute expiry. Every read and write fails open: an unavailable store,
a failed command or an unreadable payload all behave like a cache miss.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from basechat_cache.cache.entry import CacheContext, CacheEntry, resolve_ttl
from basechat_cache.cache.errors import CacheOperationError, SerializationError, fail_open
from basechat_cache.observability.metrics import record_cache_hit, record_cache_miss

if TYPE_CHECKING:
    from basechat_cache.cache.connection import RedisConnectionManager
    from basechat_cache.cache.keys import CacheKeys
    from basechat_cache.cache.tag_index import TagIndex

logger = logging.getLogger(__name__)


class KeyStore:
    """Get/set of cache entries with TTL."""

    def __init__(
        self,
        connection: RedisConnectionManager,
        keys: CacheKeys,
        tag_index: TagIndex,
        default_ttl: int,
    ):
        self.connection = connection
        self.keys = keys
        self.tag_index = tag_index
        self.default_ttl = default_ttl

    async def _available(self, operation: str) -> bool:
        if await self.connection.ensure_connected():
            return True
        # DISABLED is logged once, by the connection manager
        if not self.connection.is_disabled:
            logger.warning(f"Redis unavailable in {operation}()")
        return False

    @fail_open("get")
    async def get(self, key: str) -> CacheEntry | None:
        """Read an entry. Returns None on a miss or any failure."""
        if not await self._available("get"):
            record_cache_miss()
            return None

        data = await self.connection.client.get(self.keys.entry(key))
        if data is None:
            record_cache_miss()
            return None

        try:
            entry = CacheEntry.from_bytes(data)
        except SerializationError as e:
            logger.warning(f"Ignoring unreadable cache entry {key!r}: {e}")
            record_cache_miss()
            return None

        record_cache_hit()
        return entry

    @fail_open("set")
    async def set(
        self,
        key: str,
        data: Mapping[str, Any],
        ctx: Mapping[str, Any] | None = None,
    ) -> None:
        """Write an entry and index it under its tags."""
        context = CacheContext.from_mapping(ctx)
        ttl = resolve_ttl(data, self.default_ttl)

        if not await self._available("set"):
            return

        cache_key = self.keys.entry(key)
        entry = CacheEntry.create({**data, "revalidate": ttl}, context.tags)

        if not await self.connection.client.set(cache_key, entry.to_bytes(), ex=ttl):
            raise CacheOperationError(f"SET {cache_key} was not acknowledged")

        await self.tag_index.add(cache_key, context.tags, ttl)
