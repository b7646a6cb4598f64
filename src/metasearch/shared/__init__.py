"""
Shared module for Metasearch.

Provides:
- Unified exception hierarchy
- Async utilities for provider fan-out
"""

from .async_utils import (
    async_retry,
    gather_settled,
)
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InitializationError,
    MalformedResponseError,
    MetasearchError,
    NetworkError,
    PersistenceError,
    ProviderError,
    StaleResultDiscarded,
    get_retry_delay,
    is_retryable_error,
)

__all__ = [
    # Exceptions
    "MetasearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "ProviderError",
    "NetworkError",
    "AuthenticationError",
    "MalformedResponseError",
    "InitializationError",
    "ConfigurationError",
    "PersistenceError",
    "StaleResultDiscarded",
    "is_retryable_error",
    "get_retry_delay",
    # Async utilities
    "async_retry",
    "gather_settled",
]
