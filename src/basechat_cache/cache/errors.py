"""Error taxonomy and the fail-open wrapper for cache operations.

Nothing in this package may raise into the rendering host. Every store
interaction goes through :func:`fail_open`, which converts failures into the
operation's documented miss/no-op result.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from basechat_cache.observability.metrics import record_cache_error, record_cache_operation

if TYPE_CHECKING:
    from basechat_cache.cache.connection import RedisConnectionManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheError(Exception):
    """Base class for cache errors."""


class CacheConnectionError(CacheError):
    """The store is unreachable or rejected the connection."""


class SerializationError(CacheError):
    """A stored payload could not be decoded into a cache entry."""


class CacheOperationError(CacheError):
    """An individual store command failed."""


class InvalidCacheKeyError(CacheError):
    """A caller key would collide with the tag index namespace."""


class _HasConnection(Protocol):
    connection: RedisConnectionManager


def fail_open(
    operation: str, default: Any = None
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Wrap a cache coroutine method so failures return ``default``.

    The wrapped method's owner must expose ``connection``; failures are
    reported to it so connection-class errors update the connection state.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(self: _HasConnection, *args: Any, **kwargs: Any) -> T:
            start = time.perf_counter()
            try:
                return await func(self, *args, **kwargs)
            except Exception as e:
                logger.warning(f"Cache {operation} failed: {e}")
                record_cache_error(operation)
                self.connection.report_error(e)
                return default  # type: ignore[no-any-return]
            finally:
                record_cache_operation(operation, time.perf_counter() - start)

        return wrapper

    return decorator
