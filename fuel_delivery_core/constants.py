"""
Constants for the fuel delivery core.

This module centralizes magic strings used throughout the package.
"""

from enum import Enum


class EnvironmentVariable(str, Enum):
    """Environment variable names read by the configuration layer."""

    DATABASE_URL = "DATABASE_URL"
    LOG_LEVEL = "LOG_LEVEL"
    APP_ENV = "APP_ENV"
    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    ENABLE_LOGS_QUEUE = "ENABLE_LOGS_QUEUE"


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class QueueName(str, Enum):
    """Queue names used for log shipping."""

    LOGS = "logs-queue"


class AuditAction(str, Enum):
    """Actions written to the activity log for CRUD mutations."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class DashboardPeriod(str, Enum):
    """Reporting periods for order statistics."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


# SQLSTATE codes that signal a retryable serialization failure
SERIALIZATION_FAILURE_SQLSTATES = frozenset({"40001", "40P01"})
