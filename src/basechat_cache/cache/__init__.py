"""Cache layer for basechat.

Provides a shared Redis cache for rendered artifacts:
- Namespaced entries with TTL expiry
- Tag index for bulk invalidation (e.g. every page of a tenant)
- Lazy single-flight connection with bounded reconnection
- Fail-open behavior: Redis problems become cache misses, never errors
"""

from basechat_cache.cache.connection import ConnectionState, RedisConnectionManager
from basechat_cache.cache.entry import CacheContext, CacheEntry, normalize_tags, resolve_ttl
from basechat_cache.cache.errors import (
    CacheConnectionError,
    CacheError,
    CacheOperationError,
    InvalidCacheKeyError,
    SerializationError,
    fail_open,
)
from basechat_cache.cache.handler import CacheHandler, create_cache_handler
from basechat_cache.cache.keys import CacheKeys
from basechat_cache.cache.store import KeyStore
from basechat_cache.cache.tag_index import TagIndex
from basechat_cache.cache.tags import build_tags, build_tenant_tag, build_tenant_user_tag

__all__ = [
    # Host adapter
    "CacheHandler",
    "create_cache_handler",
    # Components
    "ConnectionState",
    "RedisConnectionManager",
    "KeyStore",
    "TagIndex",
    "CacheKeys",
    # Entries
    "CacheContext",
    "CacheEntry",
    "normalize_tags",
    "resolve_ttl",
    # Tags
    "build_tags",
    "build_tenant_tag",
    "build_tenant_user_tag",
    # Errors
    "CacheError",
    "CacheConnectionError",
    "CacheOperationError",
    "InvalidCacheKeyError",
    "SerializationError",
    "fail_open",
]
