# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Review domain package."""

from src.domains.review.entities import Review, UserSnapshot
from src.domains.review.repository import ReviewRepository

__all__ = [
    "Review",
    "ReviewRepository",
    "UserSnapshot",
]
