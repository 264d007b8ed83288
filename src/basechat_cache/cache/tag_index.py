"""Tag index and tag-based revalidation.

Each tag has a Redis set ``{tag_prefix}{tag}`` holding the namespaced keys of
the entries written with that tag. Revalidating a tag deletes every member and
the set itself in one MULTI/EXEC block.

Membership is best-effort: entries that expire on their own stay listed, and
revalidating one tag does not prune the other tags of the deleted entries.
Deleting a key that no longer exists is a no-op, so stale members are harmless.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from basechat_cache.cache.entry import normalize_tags
from basechat_cache.cache.errors import fail_open
from basechat_cache.observability.metrics import record_revalidated_keys

if TYPE_CHECKING:
    from basechat_cache.cache.connection import RedisConnectionManager
    from basechat_cache.cache.keys import CacheKeys

logger = logging.getLogger(__name__)


class TagIndex:
    """Reverse index from invalidation tag to cache entry keys."""

    def __init__(self, connection: RedisConnectionManager, keys: CacheKeys):
        self.connection = connection
        self.keys = keys

    async def add(self, cache_key: str, tags: Sequence[str], ttl: int) -> None:
        """Add ``cache_key`` to every tag's index in one pipeline.

        On Redis 7+ the index expiry is set when missing and only ever
        extended, so an index never expires before the longest-lived entry
        written into it. Older or unidentified servers reject EXPIRE options
        inside MULTI, which would drop the SADD too; there the expiry is
        reset to ``ttl`` on every write.
        Errors propagate to the caller's fail-open boundary.
        """
        if not tags:
            return

        extend_only = self.connection.supports_expire_options
        async with self.connection.client.pipeline() as pipe:
            for tag in tags:
                index_key = self.keys.tag_index(tag)
                pipe.sadd(index_key, cache_key)
                if extend_only:
                    pipe.expire(index_key, ttl, nx=True)
                    pipe.expire(index_key, ttl, gt=True)
                else:
                    pipe.expire(index_key, ttl)
            await pipe.execute()

    @fail_open("tag_members", default=())
    async def members(self, tag: str) -> Sequence[str]:
        """Namespaced entry keys currently indexed under ``tag``."""
        if not await self.connection.ensure_connected():
            return ()
        members = await self.connection.client.smembers(self.keys.tag_index(tag))
        return sorted(members)

    @fail_open("revalidate_tag", default=0)
    async def revalidate(self, tags: str | Sequence[str]) -> int:
        """Delete every entry indexed under each of ``tags``.

        Tags are processed independently; a failure on one tag is logged and
        the remaining tags are still revalidated.

        Returns:
            Number of entries actually deleted.
        """
        tag_list = normalize_tags(tags)
        if not tag_list:
            return 0

        if not await self.connection.ensure_connected():
            if not self.connection.is_disabled:
                logger.warning("Redis unavailable in revalidate_tag()")
            return 0

        deleted = 0
        for tag in tag_list:
            deleted += await self._revalidate_one(tag)
        return deleted

    @fail_open("revalidate_one_tag", default=0)
    async def _revalidate_one(self, tag: str) -> int:
        # An earlier tag's failure may have dropped the connection
        if not await self.connection.ensure_connected():
            return 0
        index_key = self.keys.tag_index(tag)
        client = self.connection.client

        cache_keys = await client.smembers(index_key)
        if not cache_keys:
            return 0

        async with client.pipeline() as pipe:
            for cache_key in cache_keys:
                pipe.delete(cache_key)
            pipe.delete(index_key)
            results = await pipe.execute()

        deleted = sum(results[:-1])
        record_revalidated_keys(deleted)
        logger.info(
            f"Revalidated tag {tag}: {deleted} of {len(cache_keys)} indexed entries deleted"
        )
        return deleted
