"""
Lufeed Parser Configuration
===========================

Configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence.

Nested sections use ``__`` as delimiter, e.g.::

    LUFEED_CACHE__ADDRESS=localhost:6379
    LUFEED_PROXY__PROXIES='[{"id": 1, "address": "10.0.0.1", "port": "3128",
                             "username": "u", "password": "p"}]'
"""

import os
from pathlib import Path
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ServiceSettings(BaseModel):
    """Service identity."""
    name: str = Field(default="lufeed-parser", description="Service name")
    environment: str = Field(default="development", description="Deployment environment")


class ProxyEntry(BaseModel):
    """A single upstream proxy credential."""
    id: int = Field(..., ge=1, description="Proxy identity (0 is reserved for direct)")
    address: str = Field(..., min_length=1, description="Proxy host")
    port: str = Field(..., min_length=1, description="Proxy port")
    username: str = Field(default="", description="Proxy user")
    password: str = Field(default="", description="Proxy password")

    model_config = {"frozen": True}

    @property
    def url(self) -> str:
        """Proxy URL usable by the HTTP transport."""
        if self.username or self.password:
            return f"http://{self.username}:{self.password}@{self.address}:{self.port}"
        return f"http://{self.address}:{self.port}"

    def __str__(self) -> str:
        return f"Proxy({self.id}:{self.address}:{self.port})"


class ProxySettings(BaseModel):
    """Egress proxy pool configuration."""
    proxies: List[ProxyEntry] = Field(default_factory=list, description="Configured proxies")

    @field_validator('proxies')
    @classmethod
    def validate_unique_ids(cls, v):
        """Proxy identities key the occupancy table and must be unique."""
        ids = [proxy.id for proxy in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Proxy ids must be unique")
        return v


class HttpSettings(BaseModel):
    """Outbound HTTP transport tuning."""
    connect_timeout: float = Field(default=60.0, gt=0, description="Connect and TLS handshake timeout in seconds")
    read_timeout: float = Field(default=60.0, gt=0, description="Response header/read timeout in seconds")
    expect_continue_timeout: float = Field(default=1.0, ge=0, description="Expect-continue timeout in seconds")
    idle_timeout: float = Field(default=90.0, gt=0, description="Idle keep-alive timeout in seconds")
    max_connections: int = Field(default=100, ge=1, le=1000, description="Max pooled connections per client")
    max_connections_per_host: int = Field(default=10, ge=1, le=100, description="Max connections per host")


class CacheSettings(BaseModel):
    """Key-value cache and pub/sub configuration."""
    address: Optional[str] = Field(default=None, description="Redis address (host:port or redis:// URL)")
    password: Optional[str] = Field(default=None, description="Redis password")
    db: int = Field(default=0, ge=0, description="Redis database index")
    item_ttl_hours: int = Field(default=24, ge=1, le=720, description="Feed item cache lifetime in hours")


class ParsingSettings(BaseModel):
    """Feed and page parsing limits."""
    max_items: int = Field(default=20, ge=1, le=500, description="Maximum feed items enriched per request")
    fetch_attempts: int = Field(default=3, ge=1, le=10, description="Attempts for feed and page fetches")
    item_retries: int = Field(default=2, ge=0, le=10, description="Extra attempts for an item on transient errors")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/lufeed-parser.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")


class LufeedSettings(BaseSettings):
    """Main application settings."""

    service: ServiceSettings = Field(default_factory=ServiceSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    parsing: ParsingSettings = Field(default_factory=ParsingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "LUFEED_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if self.cache.address is not None and not self.cache.address.strip():
            errors.append("Cache address must not be blank")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def is_production_mode(self) -> bool:
        """Check if running in production mode."""
        environment = self.service.environment or os.getenv("ENV", "development")
        return not self.debug and environment.lower() == "production"

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> LufeedSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        # Precedence: environment, then .env, then Field defaults
        settings = LufeedSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[LufeedSettings] = None


def get_settings(reload: bool = False) -> LufeedSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
