"""Client configuration.

`ClientConfig` is the immutable value a client is built from. `Settings`
loads the same values (plus logging options) from the environment using
pydantic-settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROTOCOL = "http"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000
DEFAULT_TIMEOUT_MS = 2500

# Room creation can be slow on the server side
CREATE_TIMEOUT_MS = 10000


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one EtherCalc server."""

    protocol: str = DEFAULT_PROTOCOL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {self.timeout_ms}")

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def timeout(self) -> float:
        """Request timeout in seconds."""
        return self.timeout_ms / 1000


class Settings(BaseSettings):
    """Client settings loaded from EXTRACALC_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EXTRACALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    protocol: str = DEFAULT_PROTOCOL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            protocol=self.protocol,
            host=self.host,
            port=self.port,
            timeout_ms=self.timeout_ms,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
