"""Environment-driven application settings.

All settings can be provided through environment variables or a ``.env``
file in the working directory.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Redis can be configured either with a full ``REDIS_URL`` or with
    separate ``REDIS_HOST``/``REDIS_PORT``/``REDIS_PASSWORD`` values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Redis cache store
    cache_enabled: bool = Field(default=True)
    redis_url: Optional[str] = Field(default=None)
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_password: Optional[str] = Field(default=None)
    redis_max_connections: int = Field(default=20)
    redis_socket_timeout: float = Field(default=5.0)
    redis_reconnect_max_attempts: int = Field(default=10)
    redis_reconnect_step_ms: int = Field(default=100)
    redis_reconnect_cap_ms: int = Field(default=3000)

    # Authoritative document store (used for the search capability probe)
    mongodb_uri: str = Field(default="")

    @property
    def resolved_redis_url(self) -> str:
        """Redis URL built from REDIS_URL or the host/port/password triple."""
        if self.redis_url:
            return self.redis_url

        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/0"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
