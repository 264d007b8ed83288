from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Stored-entry lifetime when the host gives no usable revalidate interval.
# 84600 is the value production has always run with; it is documented as
# "about 24 hours" and is deliberately not rounded to 86400. Override with
# CACHE_DEFAULT_TTL.
DEFAULT_TTL = 84600


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BASECHAT_", env_file=".env", extra="ignore", populate_by_name=True
    )

    # Redis
    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    # Install the Redis handler at all; otherwise the host keeps its in-process cache
    use_redis: bool = Field(default=False, validation_alias="USE_REDIS")
    socket_timeout: float = Field(default=5.0, validation_alias="REDIS_SOCKET_TIMEOUT")

    # Key schema
    cache_key_prefix: str = Field(default="basechat:", validation_alias="CACHE_KEY_PREFIX")
    tag_index_prefix: str = Field(default="basechat:tags:", validation_alias="CACHE_TAG_PREFIX")
    default_ttl: int = Field(default=DEFAULT_TTL, gt=0, validation_alias="CACHE_DEFAULT_TTL")

    # Redis reconnection (linear backoff, then the cache is disabled)
    reconnect_max_retries: int = Field(
        default=3, ge=0, validation_alias="REDIS_RECONNECT_MAX_RETRIES"
    )
    reconnect_step: float = Field(default=0.1, ge=0, validation_alias="REDIS_RECONNECT_STEP")
    reconnect_delay_max: float = Field(
        default=3.0, ge=0, validation_alias="REDIS_RECONNECT_DELAY_MAX"
    )
    health_check_interval: float = Field(
        default=30.0, ge=0, validation_alias="REDIS_HEALTH_CHECK_INTERVAL"
    )

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
