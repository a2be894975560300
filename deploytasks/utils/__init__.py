"""Utility modules for the deploytasks package."""

from .retry import (
    ConfigurationError,
    ExponentialBackoff,
    RetryCancelledError,
    RetryPolicy,
    backoff_retry,
    execute,
)

__all__ = [
    "ConfigurationError",
    "ExponentialBackoff",
    "RetryCancelledError",
    "RetryPolicy",
    "backoff_retry",
    "execute",
]
