"""Utility modules for the fuel delivery core."""

from .json_utils import dumps, loads, to_json_safe
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    configure_logging,
    get_logger,
    reset_logging,
)
from .time_utils import ensure_utc, utc_now

__all__ = [
    "AzureQueueHandler",
    "ContextAwareLogger",
    "configure_logging",
    "dumps",
    "ensure_utc",
    "get_logger",
    "loads",
    "reset_logging",
    "to_json_safe",
    "utc_now",
]
