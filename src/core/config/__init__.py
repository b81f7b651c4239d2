# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the course service.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.kafka.servers_list)
    ['localhost:9092']
"""

from src.core.config.settings import (
    CacheSettings,
    ConcurrencySettings,
    KafkaSettings,
    OTelSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "RedisSettings",
    "KafkaSettings",
    "CacheSettings",
    "ConcurrencySettings",
    "OTelSettings",
]
