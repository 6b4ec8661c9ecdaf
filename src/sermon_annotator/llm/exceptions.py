"""Exception classes for LLM provider operations in Sermon Annotator.

This module provides the exception hierarchy used by the provider adapters
and by the resilient invoker that wraps them.

The exception hierarchy follows a structured approach:
- LLMClientError: Base class for all LLM-related errors
- ClassifiedProviderError: A provider failure tagged with an ErrorClass
- AuthenticationError: API key/authentication failures (never retried)
- LLMConnectionError: Network connectivity issues (retryable)
- LLMValidationError: Requests rejected before reaching a provider
- ExhaustedRetries: Retry ceiling or wait budget reached
- Unrecoverable: Failure that must not be retried
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any


class ErrorClass(str, Enum):
    """Provider-agnostic classification of a failed provider call."""

    RATE_LIMITED = 'rate_limited'
    OVERLOADED = 'overloaded'
    RETRYABLE = 'retryable'
    UNRECOVERABLE = 'unrecoverable'


class LLMClientError(Exception):
    """Base exception class for all LLM client operations.

    This serves as the root exception for all LLM-related errors, providing
    common attributes and functionality for error context tracking.
    """

    def __init__(
        self,
        message: str,
        *,
        client_type: str | None = None,
        operation: str | None = None,
    ) -> None:
        """Initialize LLMClientError with context information.

        Args:
            message: Descriptive error message.
            client_type: Type of LLM client ('claude', 'openai', 'openrouter').
            operation: Operation being performed when error occurred.
        """
        super().__init__(message)
        self.client_type = client_type
        self.operation = operation

    def __str__(self) -> str:
        """Return formatted error message with context."""
        parts = [super().__str__()]
        if self.client_type:
            parts.append(f'Client: {self.client_type}')
        if self.operation:
            parts.append(f'Operation: {self.operation}')
        return ' | '.join(parts)


class ClassifiedProviderError(LLMClientError):
    """A provider failure carrying the classification that drives retries.

    Every concrete adapter converts its SDK or HTTP errors into this type so
    the invoker never has to know which provider produced them.
    """

    def __init__(
        self,
        message: str,
        *,
        classification: ErrorClass,
        client_type: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        """Initialize ClassifiedProviderError.

        Args:
            message: Descriptive error message.
            classification: How the invoker should treat this failure.
            client_type: Type of LLM client.
            operation: Operation being performed when error occurred.
            status_code: HTTP status code from the provider, if any.
            retry_after: Provider-suggested wait in seconds, if any.
        """
        super().__init__(message, client_type=client_type, operation=operation)
        self.classification = ErrorClass(classification)
        self.status_code = status_code
        self.retry_after = retry_after

    def is_retryable(self) -> bool:
        """Check if the invoker may retry this failure.

        Returns:
            True unless the failure is classified as unrecoverable.
        """
        return self.classification is not ErrorClass.UNRECOVERABLE


class AuthenticationError(ClassifiedProviderError):
    """Exception for API authentication and authorization failures."""

    def __init__(
        self,
        message: str,
        *,
        client_type: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            message,
            classification=ErrorClass.UNRECOVERABLE,
            client_type=client_type,
            operation=operation,
            status_code=status_code,
        )


class LLMConnectionError(ClassifiedProviderError):
    """Exception for network connectivity issues.

    Raised when the client cannot establish or maintain a connection
    to the provider. Connection failures are treated as retryable.
    """

    def __init__(
        self,
        message: str,
        *,
        client_type: str | None = None,
        operation: str | None = None,
        endpoint: str | None = None
    ) -> None:
        """Initialize LLMConnectionError with network context.

        Args:
            message: Descriptive error message.
            client_type: Type of LLM client.
            operation: Operation being performed when error occurred.
            endpoint: API endpoint that failed to connect.
        """
        super().__init__(
            message,
            classification=ErrorClass.RETRYABLE,
            client_type=client_type,
            operation=operation,
        )
        self.endpoint = endpoint


class LLMValidationError(LLMClientError):
    """Exception for request validation failures.

    Raised when requests fail validation before being sent to a provider.
    """

    def __init__(
        self,
        message: str,
        *,
        client_type: str | None = None,
        operation: str | None = None,
        field: str | None = None,
        value: Any = None
    ) -> None:
        """Initialize LLMValidationError with validation context.

        Args:
            message: Descriptive error message.
            client_type: Type of LLM client.
            operation: Operation being performed when error occurred.
            field: Name of the field that failed validation.
            value: Value that failed validation.
        """
        super().__init__(message, client_type=client_type, operation=operation)
        self.field = field
        self.value = value


class ExhaustedRetries(LLMClientError):
    """Raised when a retryable failure outlived its attempt ceiling or wait budget."""

    def __init__(
        self,
        message: str,
        *,
        client_type: str | None = None,
        operation: str | None = None,
        attempts: int = 0,
        last_error: ClassifiedProviderError | None = None,
    ) -> None:
        """Initialize ExhaustedRetries.

        Args:
            message: Descriptive error message.
            client_type: Type of LLM client.
            operation: Operation being performed when error occurred.
            attempts: Number of provider calls made.
            last_error: The final classified failure.
        """
        super().__init__(message, client_type=client_type, operation=operation)
        self.attempts = attempts
        self.last_error = last_error


class Unrecoverable(LLMClientError):
    """Raised immediately for failures that must not be retried."""

    def __init__(
        self,
        message: str,
        *,
        client_type: str | None = None,
        operation: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize Unrecoverable.

        Args:
            message: Descriptive error message.
            client_type: Type of LLM client.
            operation: Operation being performed when error occurred.
            cause: The original failure.
        """
        super().__init__(message, client_type=client_type, operation=operation)
        self.cause = cause


def parse_retry_after(headers: Mapping[str, str] | None) -> float | None:
    """Read a provider wait hint from response headers.

    ``retry-after-ms`` takes precedence over ``retry-after``. HTTP-date values
    are ignored.

    Args:
        headers: Case-insensitive response headers (httpx/aiohttp), or None.

    Returns:
        Suggested wait in seconds, or None when no usable hint exists.
    """
    if not headers:
        return None

    retry_ms = headers.get('retry-after-ms')
    if retry_ms:
        try:
            return float(retry_ms) / 1000.0
        except ValueError:
            pass

    retry_after = headers.get('retry-after')
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            return None
    return None


def classify_http_error(
    message: str,
    *,
    status_code: int | None,
    headers: Mapping[str, str] | None = None,
    client_type: str | None = None,
    operation: str | None = None,
) -> ClassifiedProviderError:
    """Map an HTTP failure onto the provider-agnostic ErrorClass taxonomy.

    Args:
        message: Descriptive error message.
        status_code: HTTP status code of the failed response.
        headers: Response headers, used for retry hints and x-should-retry.
        client_type: Type of LLM client.
        operation: Operation being performed when error occurred.

    Returns:
        A ClassifiedProviderError (AuthenticationError for 401/403).
    """
    should_retry = (headers or {}).get('x-should-retry')

    if status_code in (401, 403):
        return AuthenticationError(
            message, client_type=client_type, operation=operation, status_code=status_code
        )

    if status_code == 429:
        classification = ErrorClass.RATE_LIMITED
    elif status_code in (503, 529):
        classification = ErrorClass.OVERLOADED
    elif should_retry == 'true':
        classification = ErrorClass.RETRYABLE
    elif should_retry == 'false':
        classification = ErrorClass.UNRECOVERABLE
    elif status_code is not None and (status_code in (408, 409) or 500 <= status_code <= 599):
        classification = ErrorClass.RETRYABLE
    else:
        classification = ErrorClass.UNRECOVERABLE

    return ClassifiedProviderError(
        message,
        classification=classification,
        client_type=client_type,
        operation=operation,
        status_code=status_code,
        retry_after=parse_retry_after(headers),
    )
