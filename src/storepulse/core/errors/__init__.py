"""Error classification and the storepulse exception hierarchy."""

from storepulse.core.errors.codes import FailureKind, KindProfile
from storepulse.core.errors.models import ClassifiedError
from storepulse.core.errors.exceptions import (
    ApiError,
    ConfigError,
    FetchError,
    OfflineError,
    RetryCancelledError,
    RetryExhaustedError,
    RetryInProgressError,
    StorePulseError,
)
from storepulse.core.errors.classifier import ErrorClassifier, classify, parse_retry_after

__all__ = [
    "FailureKind",
    "KindProfile",
    "ClassifiedError",
    "ApiError",
    "ConfigError",
    "FetchError",
    "OfflineError",
    "RetryCancelledError",
    "RetryExhaustedError",
    "RetryInProgressError",
    "StorePulseError",
    "ErrorClassifier",
    "classify",
    "parse_retry_after",
]
