"""Cache key schema for basechat.

Key formats:
- entry:     {prefix}{key}            e.g. "basechat:page:/o/acme"
- tag index: {tag_prefix}{tag}        e.g. "basechat:tags:tenant:acme"

Where:
- prefix: "basechat:" (namespace inside a shared Redis)
- tag_prefix: "basechat:tags:" (reverse index from tag to entry keys)
- key: caller-supplied cache key, used verbatim
- tag: invalidation tag, used verbatim

With the default prefixes the tag namespace sits inside the entry namespace,
so a caller key such as "tags:tenant:acme" would address a tag index. Such
keys are rejected by :meth:`CacheKeys.entry`.
"""

from __future__ import annotations

from basechat_cache.cache.errors import InvalidCacheKeyError
from basechat_cache.config import Settings


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "basechat:"
    TAG_PREFIX = "basechat:tags:"

    def __init__(self, prefix: str = PREFIX, tag_prefix: str = TAG_PREFIX):
        self.prefix = prefix
        self.tag_prefix = tag_prefix

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheKeys:
        return cls(prefix=settings.cache_key_prefix, tag_prefix=settings.tag_index_prefix)

    def entry(self, key: str) -> str:
        """Key for a stored cache entry.

        Raises:
            InvalidCacheKeyError: If the key falls inside the tag index namespace.
        """
        namespaced = f"{self.prefix}{key}"
        if self.is_tag_index(namespaced):
            raise InvalidCacheKeyError(f"Cache key {key!r} collides with the tag index")
        return namespaced

    def tag_index(self, tag: str) -> str:
        """Key for the set of entry keys carrying ``tag``."""
        return f"{self.tag_prefix}{tag}"

    def strip_entry(self, namespaced_key: str) -> str | None:
        """Recover the caller-supplied key from a namespaced entry key.

        Returns None if the key is outside the entry namespace.
        """
        if not namespaced_key.startswith(self.prefix) or self.is_tag_index(namespaced_key):
            return None
        return namespaced_key[len(self.prefix) :]

    def is_tag_index(self, namespaced_key: str) -> bool:
        return namespaced_key.startswith(self.tag_prefix)
