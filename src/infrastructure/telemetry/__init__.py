# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Telemetry infrastructure for the course service.

This package provides OpenTelemetry setup and the traced decorator that
wraps every use case in a span.
"""

from src.infrastructure.telemetry.setup import setup_telemetry, setup_telemetry_from_settings
from src.infrastructure.telemetry.tracing import traced

__all__ = ["setup_telemetry", "setup_telemetry_from_settings", "traced"]
