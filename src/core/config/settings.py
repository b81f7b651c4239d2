# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the course
service. Settings are loaded from environment variables with sensible
defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.service_name)
    'course-service'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis configuration for read-through caching and event deduplication.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "course-redis"
    port: int = 6379
    password: SecretStr = SecretStr("")
    database: int = 0
    max_connections: int = 50

    @property
    def url(self) -> str:
        """Build the Redis URL from components."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"
        return f"redis://{self.host}:{self.port}/{self.database}"


class KafkaSettings(BaseSettings):
    """Kafka producer configuration.

    Attributes:
        bootstrap_servers: Comma separated list of broker addresses.
        client_id: Client identifier sent to the brokers.
        acks: Producer acknowledgement mode.
        retries: Producer-level send retries.
        send_timeout: Seconds to wait for a send to be acknowledged.
    """

    model_config = SettingsConfigDict(
        env_prefix="KAFKA_",
        extra="ignore",
    )

    bootstrap_servers: str = "localhost:9092"
    client_id: str = "course-service"
    acks: Literal["0", "1", "all"] = "all"
    retries: int = 3
    send_timeout: float = 10.0

    @property
    def servers_list(self) -> list[str]:
        """Parse bootstrap servers into a list."""
        return [server.strip() for server in self.bootstrap_servers.split(",") if server.strip()]


class CacheSettings(BaseSettings):
    """Cache behaviour for course aggregates."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        extra="ignore",
    )

    enabled: bool = True
    default_ttl: int = 3600
    processed_event_ttl: int = 7 * 24 * 3600


class ConcurrencySettings(BaseSettings):
    """Optimistic concurrency retry policy.

    Attributes:
        max_attempts: Total attempts of a load-mutate-save cycle.
        wait_min: Minimum backoff between attempts in seconds.
        wait_max: Maximum backoff between attempts in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONCURRENCY_",
        extra="ignore",
    )

    max_attempts: int = 3
    wait_min: float = 0.05
    wait_max: float = 1.0


class OTelSettings(BaseSettings):
    """OpenTelemetry observability configuration.

    Attributes:
        enabled: Whether OpenTelemetry is enabled.
        exporter_otlp_endpoint: OTLP exporter endpoint.
    """

    model_config = SettingsConfigDict(
        env_prefix="OTEL_",
        extra="ignore",
    )

    enabled: bool = False
    exporter_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        service_name: Name used as event source and tracing service name.
        redis: Redis settings.
        kafka: Kafka producer settings.
        cache: Cache settings.
        concurrency: Conflict retry settings.
        otel: OpenTelemetry settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"
    service_name: str = "course-service"

    # Subsettings - loaded with their own env prefixes
    redis: RedisSettings = Field(default_factory=RedisSettings)
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    otel: OTelSettings = Field(default_factory=OTelSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with debug enabled or
                without an authenticated Redis.
        """
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "Debug mode must be disabled in production. Set DEBUG=false."
                )
            if not self.redis.password.get_secret_value():
                raise ValueError(
                    "Redis password must be set in production. "
                    "Set REDIS_PASSWORD environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
