# countervalues/exceptions.py
"""
Countervalues exceptions.

These exceptions represent domain-specific errors and contain NO knowledge
of any HTTP framework. Provider errors carry an optional ``status`` so the
sync service can tell HTTP failures (which drive backoff) from transport
failures (which are simply retried on the next pass).

Exception Hierarchy:
    CountervaluesError (base)
    ├── ProviderError
    │   ├── ProviderUnavailableError   (no status, transient)
    │   ├── ProviderHTTPError          (status set)
    │   │   └── RateLimitError
    │   └── InvalidRateDataError       (no status)
    ├── StateImportError
    └── ConfigurationError

Lookups and conversions never raise for missing data; they return None.
"""


class CountervaluesError(Exception):
    """
    Base exception for all countervalues errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# PROVIDER ERRORS
# =============================================================================


class ProviderError(CountervaluesError):
    """
    Base exception for countervalues provider failures.

    Attributes:
        provider: Name of the provider that failed
        status: HTTP status code, or None when the failure happened
                below HTTP (network down, DNS, timeout, bad payload)
    """

    def __init__(
            self,
            message: str,
            provider: str | None = None,
            status: int | None = None,
    ) -> None:
        self.provider = provider
        self.status = status
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """
    Raised when the provider cannot be reached.

    Examples:
    - Network timeout
    - Connection refused
    - DNS failure

    This is a transient error: it never increments the failure counter.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider, status=None)
        self.reason = reason


class ProviderHTTPError(ProviderError):
    """
    Raised when the provider answers with a non-success HTTP status.

    Each occurrence increments the per-pair failure counter that drives
    exponential backoff.
    """

    def __init__(self, provider: str, status: int, reason: str = "") -> None:
        message = f"Provider '{provider}' returned HTTP {status}"
        if reason:
            message += f": {reason}"
        super().__init__(message, provider=provider, status=status)
        self.reason = reason


class RateLimitError(ProviderHTTPError):
    """
    Raised when the provider's rate limit has been exceeded (HTTP 429).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        reason = "rate limit exceeded"
        if retry_after:
            reason += f" (retry after {retry_after}s)"
        super().__init__(provider, 429, reason)
        self.retry_after = retry_after


class InvalidRateDataError(ProviderError):
    """Raised when the provider returns a body that is not a valid rate payload."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(
            f"Invalid rate data from provider '{provider}': {reason}",
            provider=provider,
            status=None,
        )
        self.reason = reason


# =============================================================================
# STATE ERRORS
# =============================================================================


class StateImportError(CountervaluesError):
    """
    Raised when a persisted countervalues state cannot be imported.

    Attributes:
        key: The top-level key that failed validation (if known)
    """

    def __init__(self, reason: str, key: str | None = None) -> None:
        self.key = key
        message = f"Invalid countervalues state: {reason}"
        if key:
            message = f"Invalid countervalues state at '{key}': {reason}"
        super().__init__(message)


class ConfigurationError(CountervaluesError):
    """Raised when the engine is wired with inconsistent settings."""
    pass


__all__ = [
    "CountervaluesError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderHTTPError",
    "RateLimitError",
    "InvalidRateDataError",
    "StateImportError",
    "ConfigurationError",
]
