# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""OpenTelemetry setup for the course service.

Configures the OpenTelemetry SDK so that spans opened by the traced
decorator are exported over OTLP. Without configuration the global
no-op tracer stays in place and tracing costs nothing.
"""

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)


def setup_telemetry(
    service_name: str = "course-service",
    otlp_endpoint: str | None = None,
) -> bool:
    """Setup OpenTelemetry tracing.

    Args:
        service_name: Name of the service for trace attribution.
        otlp_endpoint: OTLP collector endpoint. Tracing stays a no-op
            when empty.

    Returns:
        True if setup succeeded, False otherwise.

    Example:
        setup_telemetry(
            service_name="course-service",
            otlp_endpoint="http://localhost:4317",
        )
    """
    if not otlp_endpoint:
        logger.info("No OTLP endpoint configured, telemetry uses the noop tracer")
        return False

    try:
        provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.error("Failed to setup OpenTelemetry: %s", e)
        return False

    logger.info(
        "OpenTelemetry configured: service=%s, endpoint=%s",
        service_name,
        otlp_endpoint,
    )
    return True


def setup_telemetry_from_settings(settings: "Settings") -> bool:
    """Setup tracing from application settings when enabled."""
    if not settings.otel.enabled:
        logger.info("OpenTelemetry disabled")
        return False
    return setup_telemetry(settings.service_name, settings.otel.exporter_otlp_endpoint)
