import logging

from opentelemetry.sdk.trace import TracerProvider

from mandodesk.core.config import Settings
from mandodesk.core.logging import (
    PACKAGE_LOGGER,
    TraceContextFilter,
    build_logging_config,
    init_tracer,
    parse_otlp_headers,
    shutdown_tracer,
)


def _record(message: str = "ticket created") -> logging.LogRecord:
    return logging.LogRecord(PACKAGE_LOGGER, logging.INFO, __file__, 1, message, None, None)


def test_logging_config_levels_follow_settings():
    config = build_logging_config(Settings(log_level="debug", database_echo=False))

    assert config["loggers"][PACKAGE_LOGGER]["level"] == logging.DEBUG
    assert config["loggers"]["sqlalchemy.engine"]["level"] == logging.WARNING
    assert config["handlers"]["console"]["filters"] == ["trace_context"]


def test_database_echo_enables_statement_logging():
    config = build_logging_config(Settings(database_echo=True))
    assert config["loggers"]["sqlalchemy.engine"]["level"] == logging.INFO


def test_unknown_log_level_falls_back_to_info():
    config = build_logging_config(Settings(log_level="chatty"))
    assert config["root"]["level"] == logging.INFO


def test_trace_filter_outside_span_uses_placeholder():
    record = _record()

    assert TraceContextFilter().filter(record)
    formatted = logging.Formatter(Settings().log_format).format(record)

    assert "[trace=-]" in formatted
    assert record.span_id == "-"


def test_trace_filter_stamps_active_span():
    tracer = TracerProvider().get_tracer(__name__)
    record = _record()

    with tracer.start_as_current_span("tickets.create") as span:
        TraceContextFilter().filter(record)
        context = span.get_span_context()

    assert record.trace_id == format(context.trace_id, "032x")
    assert record.span_id == format(context.span_id, "016x")


def test_parse_otlp_headers_skips_malformed_items():
    assert parse_otlp_headers("api-key=abc, tenant = desk ,broken,=x,") == {"api-key": "abc", "tenant": "desk"}
    assert parse_otlp_headers(None) == {}


def test_tracer_disabled_by_default():
    provider = init_tracer(Settings(otel_enabled=False))

    assert provider is None
    shutdown_tracer(provider)
