"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from basechat_cache.config import Settings


@pytest.fixture
def cache_settings() -> Settings:
    """Settings pointing at a Redis URL, with instant backoff and no health monitor."""
    return Settings(
        redis_url="redis://:secret@localhost:6379/0",
        use_redis=True,
        reconnect_step=0.0,
        health_check_interval=0.0,
    )
