"""Pluggable cache handler for the rendering host.

The host's cache contract is: ``get``, ``set``, ``revalidateTag``,
``resetRequestCache`` and an optional ``disconnect`` at shutdown. None of them
may raise; an unavailable Redis only removes the caching benefit.

Example:
    handler = create_cache_handler()
    if handler is None:
        ...  # USE_REDIS is off, keep the host's in-process cache

    await handler.set("page:/o/acme", {"value": html}, {"tags": build_tags(user_id, "acme")})
    entry = await handler.get("page:/o/acme")

    # tenant settings changed
    await handler.revalidate_tag(build_tenant_tag("acme"))
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from basechat_cache.cache.connection import ClientFactory, RedisConnectionManager
from basechat_cache.cache.keys import CacheKeys
from basechat_cache.cache.store import KeyStore
from basechat_cache.cache.tag_index import TagIndex
from basechat_cache.config import Settings
from basechat_cache.config import settings as default_settings
from basechat_cache.observability.metrics import configure_metrics

logger = logging.getLogger(__name__)


class CacheHandler:
    """Redis-backed cache handler shared by every server instance."""

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self.settings = settings or default_settings
        configure_metrics(self.settings)
        self.keys = CacheKeys.from_settings(self.settings)
        self.connection = RedisConnectionManager(self.settings, client_factory)
        self.tag_index = TagIndex(self.connection, self.keys)
        self.store = KeyStore(
            self.connection,
            self.keys,
            self.tag_index,
            default_ttl=self.settings.default_ttl,
        )

    async def get(self, key: str) -> dict[str, Any] | None:
        """Get a cached entry as ``{"value", "lastModified", "tags"}``."""
        entry = await self.store.get(key)
        return entry.to_dict() if entry is not None else None

    async def set(
        self,
        key: str,
        data: Mapping[str, Any],
        ctx: Mapping[str, Any] | None = None,
    ) -> None:
        """Cache ``data`` under ``key``, tagged with ``ctx["tags"]``."""
        await self.store.set(key, data, ctx)

    async def revalidate_tag(self, tags: str | Sequence[str]) -> None:
        """Drop every entry carrying any of ``tags``."""
        await self.tag_index.revalidate(tags)

    def reset_request_cache(self) -> None:
        """No-op: the handler keeps no request-scoped state."""

    # Names used by the host's cache contract
    revalidateTag = revalidate_tag
    resetRequestCache = reset_request_cache

    async def tag_members(self, tag: str) -> list[str]:
        """Caller-facing keys currently indexed under ``tag``."""
        members = await self.tag_index.members(tag)
        return [self.keys.strip_entry(member) or member for member in members]

    async def health_check(self) -> dict[str, Any]:
        return await self.connection.health_check()

    async def disconnect(self) -> None:
        """Close the Redis connection at process shutdown. Best-effort."""
        try:
            await self.connection.close()
        except Exception as e:
            logger.warning(f"Error disconnecting cache handler: {e}")

    async def __aenter__(self) -> CacheHandler:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()


def create_cache_handler(
    settings: Settings | None = None,
    client_factory: ClientFactory | None = None,
) -> CacheHandler | None:
    """Create the Redis cache handler, or None when it should not be installed.

    Returns None when ``USE_REDIS`` is off so the host keeps its default
    in-process cache.
    """
    settings = settings or default_settings
    if not settings.use_redis:
        logger.info("USE_REDIS is off, using the host's in-process cache")
        return None
    return CacheHandler(settings, client_factory)
