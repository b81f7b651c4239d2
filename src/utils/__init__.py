# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the course service.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- text: Slug and base36 helpers
"""

from src.utils.datetime import (
    ensure_utc,
    epoch_millis,
    format_iso,
    utc_now,
)
from src.utils.logging import bind_context, get_logger, reset_context, setup_logging
from src.utils.text import clean_search_text, slugify, to_base36

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "reset_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "format_iso",
    "epoch_millis",
    # Text
    "slugify",
    "clean_search_text",
    "to_base36",
]
