"""Shared infrastructure: settings, structured logging and the async engine."""

from core.config import Settings, get_settings
from core.logger import bind_contextvars, clear_contextvars, get_logger

__all__ = [
    "Settings",
    "bind_contextvars",
    "clear_contextvars",
    "get_logger",
    "get_settings",
]
