"""Configuration and logging helpers shared by both portals."""

from .config import Settings, get_settings
from .logging import configure_logging, init_tracer, shutdown_tracer, start_observability

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "init_tracer",
    "shutdown_tracer",
    "start_observability",
]
