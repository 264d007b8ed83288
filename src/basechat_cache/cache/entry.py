"""Stored cache entry envelope.

Wire format (JSON, one Redis string per entry):
    {"value": {...}, "lastModified": 1760000000000, "tags": ["tenant:acme"]}

``lastModified`` is epoch milliseconds, as the rendering host expects.
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import orjson

from basechat_cache.cache.errors import SerializationError


def normalize_tags(tags: str | Sequence[str] | None) -> list[str]:
    """Normalize a bare tag, a tag list or nothing into a list."""
    if tags is None:
        return []
    if isinstance(tags, str):
        return [tags]
    return list(tags)


def resolve_ttl(data: Mapping[str, Any], default_ttl: int) -> int:
    """Effective TTL for ``data``: its ``revalidate`` if positive, else the default.

    Fractional intervals are rounded up so a short interval never becomes 0.
    """
    revalidate = data.get("revalidate")
    if isinstance(revalidate, bool) or not isinstance(revalidate, (int, float)):
        return default_ttl
    if not math.isfinite(revalidate) or revalidate <= 0:
        return default_ttl
    return max(1, math.ceil(revalidate))


@dataclass
class CacheContext:
    """Per-call context the host passes to ``set``."""

    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, ctx: Mapping[str, Any] | None) -> CacheContext:
        if ctx is None:
            return cls()
        return cls(tags=normalize_tags(ctx.get("tags")))


@dataclass
class CacheEntry:
    """A cache entry as stored in Redis."""

    value: Any
    last_modified: int
    tags: list[str] = field(default_factory=list)

    @classmethod
    def create(cls, value: Any, tags: list[str]) -> CacheEntry:
        return cls(value=value, last_modified=int(time.time() * 1000), tags=tags)

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "lastModified": self.last_modified, "tags": self.tags}

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes."""
        try:
            return orjson.dumps(self.to_dict())
        except TypeError as e:
            raise SerializationError(f"Cache value is not JSON serializable: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes | str) -> CacheEntry:
        """Deserialize from JSON bytes.

        Raises:
            SerializationError: If the payload is not a valid entry envelope.
        """
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise SerializationError(f"Corrupt cache payload: {e}") from e

        if not isinstance(parsed, dict) or "value" not in parsed:
            raise SerializationError("Cache payload is not an entry envelope")

        tags = parsed.get("tags") or []
        if not isinstance(tags, list):
            raise SerializationError("Cache payload has malformed tags")

        last_modified = parsed.get("lastModified", 0)
        if isinstance(last_modified, bool) or not isinstance(last_modified, (int, float)):
            raise SerializationError("Cache payload has malformed lastModified")

        return cls(value=parsed["value"], last_modified=int(last_modified), tags=tags)
