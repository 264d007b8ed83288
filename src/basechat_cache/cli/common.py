"""Shared helpers for CLI commands."""

from __future__ import annotations

import typer

from basechat_cache.cache.handler import CacheHandler
from basechat_cache.config import settings


def build_handler() -> CacheHandler:
    """Build a handler from process settings, ignoring USE_REDIS.

    Operators may inspect the cache even where the web servers run without it.
    Exits with code 1 when REDIS_URL is not set.
    """
    if not settings.redis_url:
        typer.echo("REDIS_URL is not set", err=True)
        raise typer.Exit(code=1)
    return CacheHandler(settings.model_copy(update={"health_check_interval": 0.0}))
