"""Logging and tracing setup for the MandoDesk API.

Every record passing through the console handler carries ``trace_id`` and
``span_id`` attributes so a log line can be matched to the OpenTelemetry span
of the request that produced it. Outside a span both are ``-``.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from mandodesk import __version__
from mandodesk.core.config import Settings

PACKAGE_LOGGER = "mandodesk"


class TraceContextFilter(logging.Filter):
    """Stamp the active span's ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            record.trace_id = format(context.trace_id, "032x")
            record.span_id = format(context.span_id, "016x")
        else:
            record.trace_id = "-"
            record.span_id = "-"
        return True


def parse_otlp_headers(header_string: str | None) -> dict[str, str]:
    """Turn ``key=value,key2=value2`` into a header mapping, skipping junk items."""

    if not header_string:
        return {}
    headers: dict[str, str] = {}
    for item in header_string.split(","):
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            continue
        headers[key.strip()] = value.strip()
    return headers


def build_logging_config(settings: Settings) -> dict[str, Any]:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"trace_context": {"()": TraceContextFilter}},
        "formatters": {"default": {"format": settings.log_format}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "filters": ["trace_context"],
                "level": level,
            }
        },
        "loggers": {
            PACKAGE_LOGGER: {"level": level},
            # DATABASE_ECHO turns on statement logging through this handler
            "sqlalchemy.engine": {"level": logging.INFO if settings.database_echo else logging.WARNING},
        },
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(settings: Settings) -> logging.Logger:
    dictConfig(build_logging_config(settings))
    return logging.getLogger(PACKAGE_LOGGER)


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Build and install an OTLP-exporting provider, or return ``None`` when tracing is off.

    The caller owns the returned provider and hands it to :func:`shutdown_tracer`.
    """

    if not settings.otel_enabled:
        return None

    provider = TracerProvider(
        resource=Resource(
            attributes={
                "service.name": settings.otel_service_name,
                "service.version": __version__,
                "deployment.environment": settings.environment,
            }
        )
    )
    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint or None,
        headers=parse_otlp_headers(settings.otel_exporter_otlp_headers) or None,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    if provider is not None:
        provider.shutdown()
