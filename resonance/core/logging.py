"""Process-wide observability for the portals.

Both portals run as long-lived Streamlit servers that serve many browser
sessions, so logging and tracing are set up once per process by
:func:`start_observability` and torn down when the interpreter exits.
"""

from __future__ import annotations

import atexit
import logging
from logging.config import dictConfig
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from resonance.core.config import Settings

# Client libraries that log every HTTP round trip at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "supabase_auth")

_active_provider: TracerProvider | None = None


def _parse_headers(header_string: str | None) -> dict[str, str]:
    """Turn ``key=value,key=value`` (the OTLP env format) into a mapping."""

    headers: dict[str, str] = {}
    for item in (header_string or "").split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def logging_config(settings: Settings) -> dict[str, Any]:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    quiet_level = max(level, logging.WARNING)
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"portal": {"format": settings.log_format}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "portal",
                "level": level,
            }
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            settings.app_name: {"level": level},
            "resonance": {"level": level},
            **{name: {"level": quiet_level} for name in _CHATTY_LOGGERS},
        },
    }


def configure_logging(settings: Settings) -> logging.Logger:
    """Install the portal logging config and return the application logger."""

    dictConfig(logging_config(settings))
    return logging.getLogger(settings.app_name)


def _exporter(settings: Settings) -> OTLPSpanExporter:
    options: dict[str, Any] = {}
    if settings.otel_exporter_otlp_endpoint:
        options["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = _parse_headers(settings.otel_exporter_otlp_headers)
    if headers:
        options["headers"] = headers
    return OTLPSpanExporter(**options)


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP tracer provider, once per process.

    Returns ``None`` when tracing is disabled or a provider is already active.
    """

    global _active_provider

    if _active_provider is not None or not settings.otel_enabled:
        return None

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name,
                "deployment.environment": settings.environment,
            }
        )
    )
    provider.add_span_processor(BatchSpanProcessor(_exporter(settings)))
    trace.set_tracer_provider(provider)
    _active_provider = provider
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    """Flush pending spans and release the provider."""

    global _active_provider

    if provider is None:
        return
    provider.shutdown()
    if provider is _active_provider:
        _active_provider = None


def start_observability(settings: Settings) -> TracerProvider | None:
    """Configure logging and tracing for a portal process.

    The tracer provider, when one is started, is shut down at interpreter exit
    so spans still buffered in the batch processor get exported.
    """

    logger = configure_logging(settings)
    provider = init_tracer(settings)
    if provider is not None:
        atexit.register(shutdown_tracer, provider)
        logger.info("Exporting traces as %s", settings.otel_service_name)
    return provider
