"""
Unified Exception Hierarchy for Metasearch.

Exception Hierarchy:
    MetasearchError (base)
    ├── ProviderError
    │   ├── NetworkError
    │   ├── AuthenticationError
    │   └── MalformedResponseError
    ├── InitializationError
    ├── PersistenceError
    ├── ConfigurationError
    └── StaleResultDiscarded

Provider-level errors are caught at the task boundary by the query
coordinator and never reach the user beyond "no results found".
StaleResultDiscarded is not a failure: it records a successful lookup
whose effect was suppressed because a newer query took over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, can continue
    ERROR = auto()        # Failed but can retry
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""
    PROVIDER = "provider"
    NETWORK = "network"
    PERSISTENCE = "persistence"
    CONFIGURATION = "config"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context for error messages."""
    engine_id: str | None = None
    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class MetasearchError(Exception):
    """
    Base exception for all Metasearch errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    """

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.PROVIDER,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization (logs only)."""
        result: dict[str, Any] = {
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.engine_id:
            result["engine"] = self.context.engine_id
        if self.context.operation:
            result["operation"] = self.context.operation
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        return result


# =============================================================================
# Provider Errors
# =============================================================================

class ProviderError(MetasearchError):
    """One provider's call failed. Isolated and non-fatal."""

    def __init__(
        self,
        message: str,
        *,
        engine_id: str | None = None,
        context: ErrorContext | None = None,
        retryable: bool = False,
    ) -> None:
        ctx = context or ErrorContext(engine_id=engine_id)
        super().__init__(
            message,
            context=ctx,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.PROVIDER,
            retryable=retryable,
        )

    @property
    def engine_id(self) -> str | None:
        return self.context.engine_id


class NetworkError(ProviderError):
    """Raised for connectivity issues and timeouts."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        engine_id: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, engine_id=engine_id, context=context, retryable=True)
        self.category = ErrorCategory.NETWORK
        self.severity = ErrorSeverity.TRANSIENT


class AuthenticationError(ProviderError):
    """Raised when a provider rejects the configured credentials."""

    def __init__(
        self,
        message: str = "Authentication failed",
        *,
        engine_id: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, engine_id=engine_id, context=context)


class MalformedResponseError(ProviderError):
    """Raised when a provider response cannot be mapped to results."""

    def __init__(
        self,
        message: str,
        *,
        engine_id: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        full_msg = f"Malformed response: {message}"
        if engine_id:
            full_msg = f"Malformed response ({engine_id}): {message}"
        super().__init__(full_msg, engine_id=engine_id, context=context)


# =============================================================================
# Lifecycle / configuration errors
# =============================================================================

class InitializationError(MetasearchError):
    """Raised synchronously when an engine is used before init()."""

    def __init__(
        self,
        engine_id: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext(
            engine_id=engine_id,
            operation="search",
            suggestion="Call init() with the engine credentials first",
        )
        super().__init__(
            f"Engine not initialized: {engine_id}",
            context=ctx,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


class ConfigurationError(MetasearchError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


class PersistenceError(MetasearchError):
    """Preference read/write failed. Callers fall back to defaults."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext(input_value=path)
        super().__init__(
            message,
            context=ctx,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.PERSISTENCE,
            retryable=False,
        )


class StaleResultDiscarded(MetasearchError):
    """A completed lookup whose query epoch was superseded before publishing."""

    def __init__(self, engine_id: str, query: str, current: str | None) -> None:
        super().__init__(
            f"Discarded {engine_id} results for {query!r} (current query: {current!r})",
            context=ErrorContext(engine_id=engine_id, input_value=query),
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.STALE,
            retryable=False,
        )
        self.engine_id = engine_id
        self.query = query
        self.current = current


def is_retryable_error(error: Exception) -> bool:
    """Check if an error should be retried."""
    if isinstance(error, MetasearchError):
        return error.retryable

    error_str = str(error).lower()
    transient_patterns = [
        "rate limit",
        "too many requests",
        "temporarily unavailable",
        "service unavailable",
        "connection reset",
        "timeout",
    ]
    return any(pattern in error_str for pattern in transient_patterns)


def get_retry_delay(attempt: int, base_delay: float = 0.5) -> float:
    """Exponential backoff with jitter, capped at 10 seconds."""
    import random

    delay = base_delay * (2 ** attempt)
    jitter = random.uniform(0, 0.1 * delay)
    return min(delay + jitter, 10.0)
