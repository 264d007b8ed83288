"""Redis Connection Manager with bounded reconnection.

Owns the single Redis client shared by every cache operation in the process.
Connection is established lazily by :meth:`RedisConnectionManager.ensure_connected`:

- concurrent callers share one in-flight connect attempt (single-flight)
- failed attempts back off linearly, capped at ``reconnect_delay_max``
- after ``reconnect_max_retries`` consecutive failures the manager becomes
  DISABLED and never connects again for its lifetime

Connection state is only mutated here. Other components read it through
``state``/``is_connected`` and report command failures via ``report_error``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from basechat_cache.cache.errors import CacheConnectionError
from basechat_cache.config import Settings
from basechat_cache.observability.metrics import set_connection_state

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], "Redis"]

# Errors that mean the connection itself is gone, not just one command
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    RedisConnectionError,
    RedisTimeoutError,
    CacheConnectionError,
    ConnectionError,
    TimeoutError,
)

# First server release accepting NX/XX/GT/LT on EXPIRE
EXPIRE_OPTIONS_VERSION = (7, 0)


def parse_server_version(raw: Any) -> tuple[int, ...] | None:
    """Parse ``redis_version`` from INFO, e.g. "7.2.4" -> (7, 2, 4)."""
    if not isinstance(raw, str):
        return None
    parts: list[int] = []
    for part in raw.split("."):
        if not part.isdigit():
            break
        parts.append(int(part))
    return tuple(parts) or None


# -----------------------------------------------------------------------------
# Connection State
# -----------------------------------------------------------------------------


class ConnectionState(str, Enum):
    """Connection state machine.

    DISCONNECTED -> CONNECTING -> CONNECTED
    CONNECTING -> DISCONNECTED (failure, retries remaining)
    CONNECTING -> DISABLED (failure, retries exhausted; terminal)
    CONNECTED -> DISCONNECTED (store-reported connection loss)
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISABLED = "disabled"


# -----------------------------------------------------------------------------
# Connection Manager
# -----------------------------------------------------------------------------


class RedisConnectionManager:
    """Manages the Redis client lifecycle for the cache handler.

    Features:
    - Lazy, single-flight connection
    - Linear backoff reconnection with a terminal DISABLED state
    - Background health monitor that detects connection loss
    - Graceful shutdown
    """

    def __init__(self, settings: Settings, client_factory: ClientFactory | None = None):
        self.settings = settings
        self._client_factory = client_factory or self._create_client
        self._client: Redis | None = None
        self._state = ConnectionState.DISCONNECTED
        self._connect_task: asyncio.Task[bool] | None = None
        self._monitor_task: asyncio.Task[None] | None = None
        self._failures = 0
        self.connection_attempts = 0
        self.server_version: tuple[int, ...] | None = None

        if not settings.redis_url:
            logger.warning("REDIS_URL is not set, cache will be disabled")

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.redis_url)

    @property
    def is_connected(self) -> bool:
        """Check if currently connected."""
        return self._state == ConnectionState.CONNECTED and self._client is not None

    @property
    def is_disabled(self) -> bool:
        return self._state == ConnectionState.DISABLED

    @property
    def supports_expire_options(self) -> bool:
        """Whether EXPIRE accepts NX/GT. False while the server version is unknown."""
        return self.server_version is not None and self.server_version >= EXPIRE_OPTIONS_VERSION

    @property
    def client(self) -> Redis:
        """The connected client.

        Raises:
            CacheConnectionError: If there is no live connection.
        """
        if not self.is_connected or self._client is None:
            raise CacheConnectionError(f"Redis is {self._state.value}")
        return self._client

    def _create_client(self, url: str) -> Redis:
        return redis.from_url(  # type: ignore[no-untyped-call]
            url,
            decode_responses=True,
            socket_timeout=self.settings.socket_timeout,
            socket_connect_timeout=self.settings.socket_timeout,
        )

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.info(f"Redis connection state: {self._state.value} -> {state.value}")
        self._state = state
        set_connection_state(state.value)

    def backoff_delay(self, failures: int) -> float:
        """Delay before retrying after ``failures`` consecutive failures."""
        return min(failures * self.settings.reconnect_step, self.settings.reconnect_delay_max)

    async def ensure_connected(self) -> bool:
        """Make sure a connection is available.

        Returns:
            True if connected, False if the cache is unavailable. Never raises.
        """
        if not self.is_configured or self._state == ConnectionState.DISABLED:
            return False
        if self.is_connected:
            return True

        if self._connect_task is None:
            self._connect_task = asyncio.create_task(self._connect_loop())
        task = self._connect_task

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # The shared attempt was cancelled by close(), not this caller
            if task.cancelled():
                return False
            raise
        except Exception as e:
            logger.error(f"Unexpected error while connecting to Redis: {e}")
            return False

    async def _connect_loop(self) -> bool:
        """Connect, retrying with linear backoff until connected or disabled."""
        try:
            while True:
                self._set_state(ConnectionState.CONNECTING)
                self.connection_attempts += 1
                try:
                    await self._attempt()
                except Exception as e:
                    self._failures += 1
                    if self._failures > self.settings.reconnect_max_retries:
                        logger.warning(
                            f"Redis reconnection attempts exceeded ({self._failures}), "
                            "disabling cache"
                        )
                        self._set_state(ConnectionState.DISABLED)
                        await self._discard_client()
                        return False

                    delay = self.backoff_delay(self._failures)
                    self._set_state(ConnectionState.DISCONNECTED)
                    logger.warning(
                        f"Failed to connect to Redis (attempt {self._failures}): {e}; "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue

                self._failures = 0
                self._set_state(ConnectionState.CONNECTED)
                self._start_monitor()
                logger.info(f"Connected to Redis at {self._display_url()}")
                return True
        finally:
            self._connect_task = None

    async def _attempt(self) -> None:
        if self._client is None:
            self._client = self._client_factory(self.settings.redis_url or "")
        if not await self._client.ping():
            raise CacheConnectionError("Redis did not answer PING")
        self.server_version = await self._detect_version(self._client)

    async def _detect_version(self, client: Redis) -> tuple[int, ...] | None:
        # Some managed servers rename or refuse INFO; that only loses EXPIRE options
        try:
            info = await client.info("server")
        except ResponseError as e:
            logger.info(f"Redis server version unavailable: {e}")
            return None
        raw = info.get("redis_version") if isinstance(info, dict) else None
        version = parse_server_version(raw)
        if version is not None and version < EXPIRE_OPTIONS_VERSION:
            logger.info(
                f"Redis {'.'.join(map(str, version))} predates EXPIRE NX/GT, "
                "tag index expiry falls back to plain EXPIRE"
            )
        return version

    def report_error(self, exc: BaseException) -> None:
        """Record a failure reported by a store command.

        Connection-class errors drop the state to DISCONNECTED so the next
        ``ensure_connected`` reconnects. Other errors leave the state alone.
        """
        if not isinstance(exc, CONNECTION_ERRORS):
            return
        if self._state == ConnectionState.CONNECTED:
            logger.warning(f"Redis connection lost: {exc}")
            self._set_state(ConnectionState.DISCONNECTED)

    # -------------------------------------------------------------------------
    # Health monitor
    # -------------------------------------------------------------------------

    def _start_monitor(self) -> None:
        if self.settings.health_check_interval <= 0:
            return
        if self._monitor_task is None or self._monitor_task.done():
            self._monitor_task = asyncio.create_task(self._monitor_loop())

    async def _monitor_loop(self) -> None:
        """Ping periodically; a failed ping marks the connection as lost."""
        interval = self.settings.health_check_interval
        while self._state == ConnectionState.CONNECTED:
            await asyncio.sleep(interval)
            if self._state != ConnectionState.CONNECTED or self._client is None:
                return
            try:
                await self._client.ping()
            except Exception as e:
                logger.warning(f"Redis health check failed: {e}")
                self._set_state(ConnectionState.DISCONNECTED)
                return

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Close the Redis connection. Errors are logged, not raised."""
        for task in (self._connect_task, self._monitor_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._connect_task = None
        self._monitor_task = None

        await self._discard_client()
        if self._state != ConnectionState.DISABLED:
            self._set_state(ConnectionState.DISCONNECTED)

    async def _discard_client(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except Exception as e:
            logger.warning(f"Error disconnecting from Redis: {e}")
        finally:
            self._client = None

    def _display_url(self) -> str:
        parts = urlsplit(self.settings.redis_url or "")
        host = parts.hostname or ""
        return f"{parts.scheme}://{host}:{parts.port}" if parts.port else f"{parts.scheme}://{host}"

    async def health_check(self) -> dict[str, Any]:
        """Return connection health status."""
        return {
            "configured": self.is_configured,
            "connected": self.is_connected,
            "state": self._state.value,
            "url": self._display_url() if self.is_configured else None,
            "connection_attempts": self.connection_attempts,
            "consecutive_failures": self._failures,
            "server_version": (
                ".".join(map(str, self.server_version)) if self.server_version else None
            ),
        }
