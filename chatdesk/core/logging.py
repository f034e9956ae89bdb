"""Logging and tracing setup for the chat backend."""

from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from chatdesk.core.config import Settings

BACKGROUND_LOGGER = "chatdesk.webhooks.background"
# Client libraries that log each request line at INFO.
QUIET_LOGGERS = ("httpx", "httpcore")

_tracer_provider: TracerProvider | None = None


def _parse_headers(header_string: str | None) -> dict[str, str]:
    """Parse ``key=value,key=value`` OTLP header strings, skipping malformed items."""

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
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    quiet_level = max(level, logging.WARNING)

    loggers: dict[str, Any] = {name: {"level": quiet_level} for name in QUIET_LOGGERS}
    # Webhook work runs after the response is sent; its records get their own tag.
    loggers[BACKGROUND_LOGGER] = {"handlers": ["background"], "level": level, "propagate": False}
    loggers["chatdesk"] = {"level": level}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": settings.log_format},
            "background": {"format": f"[webhook-background] {settings.log_format}"},
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "default", "level": level},
            "background": {"class": "logging.StreamHandler", "formatter": "background", "level": level},
        },
        "root": {"handlers": ["default"], "level": level},
        "loggers": loggers,
    }


def configure_logging(settings: Settings) -> logging.Logger:
    """Apply :func:`build_logging_config` and return the ``chatdesk`` logger."""

    dictConfig(build_logging_config(settings))
    return logging.getLogger("chatdesk")


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Export spans of upstream calls over OTLP/HTTP when ``OTEL_ENABLED`` is set."""

    global _tracer_provider

    if _tracer_provider is not None or not settings.otel_enabled:
        return None

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": settings.app_version,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)

    exporter_kwargs: dict[str, Any] = {}
    if settings.otel_exporter_otlp_endpoint:
        exporter_kwargs["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = _parse_headers(settings.otel_exporter_otlp_headers)
    if headers:
        exporter_kwargs["headers"] = headers
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs)))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    global _tracer_provider

    if provider is None:
        return
    provider.shutdown()
    if provider is _tracer_provider:
        _tracer_provider = None
