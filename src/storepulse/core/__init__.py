"""Core models: configuration, error taxonomy and logging."""

from storepulse.core.config import (
    ApiConfig,
    ClassifierConfig,
    DashboardConfig,
    LogConfig,
    NetworkConfig,
    RetryConfig,
)
from storepulse.core.errors import ClassifiedError, ErrorClassifier, FailureKind, classify

__all__ = [
    "ApiConfig",
    "ClassifiedError",
    "ClassifierConfig",
    "DashboardConfig",
    "ErrorClassifier",
    "FailureKind",
    "LogConfig",
    "NetworkConfig",
    "RetryConfig",
    "classify",
]
