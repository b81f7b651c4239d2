# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-domain guards and policies used by the course services."""

from src.domains.shared.concurrency import ConflictRetryPolicy
from src.domains.shared.guards import ensure_can_manage_course, find_replay

__all__ = [
    "ConflictRetryPolicy",
    "ensure_can_manage_course",
    "find_replay",
]
