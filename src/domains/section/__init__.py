# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section domain package."""

from src.domains.section.entities import Section
from src.domains.section.repository import SectionRepository

__all__ = [
    "Section",
    "SectionRepository",
]
