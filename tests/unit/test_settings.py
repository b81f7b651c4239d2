# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for settings and text helpers."""

import pytest
from pydantic import ValidationError

from src.core.config import Settings, get_settings
from src.utils.text import clean_search_text, slugify, to_base36


class TestSettings:
    """Tests for environment driven settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.service_name == "course-service"
        assert settings.kafka.servers_list == ["localhost:9092"]
        assert settings.concurrency.max_attempts == 3
        assert settings.cache.enabled is True

    def test_env_prefixes(self, monkeypatch):
        monkeypatch.setenv("KAFKA_BOOTSTRAP_SERVERS", "k1:9092, k2:9092")
        monkeypatch.setenv("CONCURRENCY_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("REDIS_HOST", "cache.internal")

        settings = get_settings()

        assert settings.kafka.servers_list == ["k1:9092", "k2:9092"]
        assert settings.concurrency.max_attempts == 5
        assert settings.redis.url == "redis://cache.internal:6379/0"

    def test_redis_url_includes_password(self, monkeypatch):
        monkeypatch.setenv("REDIS_PASSWORD", "s3cret")

        assert Settings().redis.url == "redis://:s3cret@course-redis:6379/0"

    def test_production_requires_debug_off(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("REDIS_PASSWORD", "s3cret")

        with pytest.raises(ValidationError):
            Settings(debug=True)

        assert Settings(debug=False).is_production

    def test_production_requires_redis_password(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")

        with pytest.raises(ValidationError):
            Settings(debug=False)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestTextHelpers:
    """Tests for slug and base36 helpers."""

    @pytest.mark.parametrize(
        "title, slug",
        [
            ("Intro to Python", "intro-to-python"),
            ("  Déjà Vu: Advanced_Topics -- 2 ", "deja-vu-advanced-topics-2"),
            ("C++ & Rust", "c-rust"),
            ("???", ""),
        ],
    )
    def test_slugify(self, title, slug):
        assert slugify(title) == slug

    def test_to_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_to_base36_rejects_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)

    @pytest.mark.parametrize(
        "raw, cleaned",
        [
            ("  data science ", "data science"),
            ("python'; DROP--", "python DROP"),
            ('<b>"api"</b>', "bapi/b"),
            ("'--;", None),
            (None, None),
        ],
    )
    def test_clean_search_text(self, raw, cleaned):
        assert clean_search_text(raw) == cleaned
