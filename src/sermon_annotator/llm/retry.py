"""Resilient invocation of provider clients.

The invoker wraps a single ``Client.send`` call with a retry/backoff policy
chosen by the classification of each failure. It is provider-agnostic:
swapping the client never changes retry semantics.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .base_client import Client
from .exceptions import (
    ClassifiedProviderError,
    ErrorClass,
    ExhaustedRetries,
    LLMClientError,
    Unrecoverable,
)
from .models import InvocationRequest, ModelReply

# Type aliases
SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ceilings and backoff bases per error classification.

    Ceilings count total provider calls for one logical request. Overload
    recovery is slowest, so it gets the largest base and the most attempts.

    Attributes:
        rate_limit_wait: Fixed wait when a rate limit carries no hint.
        overload_base: Exponential backoff base for overload.
        retryable_base: Exponential backoff base for other retryable errors.
        max_attempts_rate_limited: Attempt ceiling for rate limits.
        max_attempts_overloaded: Attempt ceiling for overload.
        max_attempts_retryable: Attempt ceiling for other retryable errors.
        max_total_wait: Budget in seconds for the sum of all waits, None for none.
    """
    rate_limit_wait: float = 2.0
    overload_base: float = 5.0
    retryable_base: float = 3.0
    max_attempts_rate_limited: int = 4
    max_attempts_overloaded: int = 6
    max_attempts_retryable: int = 3
    max_total_wait: float | None = 600.0

    def __post_init__(self) -> None:
        for name in ('max_attempts_rate_limited', 'max_attempts_overloaded', 'max_attempts_retryable'):
            if getattr(self, name) < 1:
                raise ValueError(f'{name} must be >= 1')
        for name in ('rate_limit_wait', 'overload_base', 'retryable_base'):
            if getattr(self, name) < 0:
                raise ValueError(f'{name} must be >= 0')
        if self.max_total_wait is not None and self.max_total_wait < 0:
            raise ValueError('max_total_wait must be >= 0')

    def max_attempts(self, classification: ErrorClass) -> int:
        """Return the attempt ceiling for a classification (1 = no retry)."""
        if classification is ErrorClass.RATE_LIMITED:
            return self.max_attempts_rate_limited
        if classification is ErrorClass.OVERLOADED:
            return self.max_attempts_overloaded
        if classification is ErrorClass.RETRYABLE:
            return self.max_attempts_retryable
        return 1

    def compute_wait(self, error: ClassifiedProviderError, retry_index: int) -> float:
        """Compute the wait before the next attempt.

        Args:
            error: The failure that triggered the retry.
            retry_index: Zero-based count of retries already made for this call.

        Returns:
            Seconds to wait.
        """
        classification = error.classification
        if classification is ErrorClass.RATE_LIMITED:
            # Provider hints are trusted verbatim.
            if error.retry_after is not None and error.retry_after >= 0:
                return float(error.retry_after)
            return self.rate_limit_wait
        if classification is ErrorClass.OVERLOADED:
            return self.overload_base * (2 ** retry_index)
        return self.retryable_base * (2 ** retry_index)


@dataclass
class RetryState:
    """Mutable bookkeeping for one logical call; never persisted."""
    attempt: int = 0
    last_classification: ErrorClass | None = None
    last_wait: float = 0.0
    total_wait: float = 0.0
    waits: list[float] = field(default_factory=list)


class ResilientInvoker:
    """Invokes a provider client with classification-driven retries.

    Callers only ever see a ModelReply, ExhaustedRetries or Unrecoverable.
    """

    def __init__(
        self,
        client: Client,
        policy: RetryPolicy | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the invoker.

        Args:
            client: Provider client exposing ``send``.
            policy: Retry policy, defaults to RetryPolicy().
            sleep: Awaitable sleep, injectable for tests.
        """
        self.client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def invoke(self, request: InvocationRequest) -> ModelReply:
        """Send a request, retrying according to the policy.

        Args:
            request: The invocation request.

        Returns:
            The provider reply.

        Raises:
            ExhaustedRetries: If a retryable failure hit its ceiling or the wait budget.
            Unrecoverable: If a failure must not be retried.
        """
        provider = request.provider
        state = RetryState()

        while True:
            state.attempt += 1
            try:
                reply = await self.client.send(request)
            except ClassifiedProviderError as e:
                error = e
            except LLMClientError as e:
                # Validation and configuration errors are never retried.
                raise Unrecoverable(
                    f'{provider} request rejected: {e}',
                    client_type=provider,
                    operation='invoke',
                    cause=e,
                ) from e
            except asyncio.CancelledError:
                raise
            except Exception as e:
                raise Unrecoverable(
                    f'{provider} call failed with unexpected error: {e}',
                    client_type=provider,
                    operation='invoke',
                    cause=e,
                ) from e
            else:
                if state.attempt > 1:
                    logging.info(
                        'Provider %s succeeded on attempt %d after %.1fs of backoff',
                        provider, state.attempt, state.total_wait,
                    )
                return reply

            state.last_classification = error.classification

            if not error.is_retryable():
                logging.error(
                    'Provider %s failed with non-retryable error on attempt %d: %s',
                    provider, state.attempt, error,
                )
                raise Unrecoverable(
                    f'{provider} call failed: {error}',
                    client_type=provider,
                    operation='invoke',
                    cause=error,
                ) from error

            ceiling = self.policy.max_attempts(error.classification)
            if state.attempt >= ceiling:
                logging.error(
                    'Provider %s: max attempts (%d) reached for %s errors',
                    provider, ceiling, error.classification.value,
                )
                raise ExhaustedRetries(
                    f'{provider} call failed after {state.attempt} attempts '
                    f'({error.classification.value}): {error}',
                    client_type=provider,
                    operation='invoke',
                    attempts=state.attempt,
                    last_error=error,
                ) from error

            wait = self.policy.compute_wait(error, len(state.waits))
            budget = self.policy.max_total_wait
            if budget is not None and state.total_wait + wait > budget:
                logging.error(
                    'Provider %s: wait of %.1fs would exceed the %.1fs retry budget',
                    provider, wait, budget,
                )
                raise ExhaustedRetries(
                    f'{provider} call exceeded its retry budget of {budget:.1f}s '
                    f'after {state.attempt} attempts: {error}',
                    client_type=provider,
                    operation='invoke',
                    attempts=state.attempt,
                    last_error=error,
                ) from error

            state.last_wait = wait
            state.total_wait += wait
            state.waits.append(wait)
            logging.warning(
                'Provider %s %s (status %s), waiting %.1fs before retrying (attempt %d/%d)',
                provider,
                error.classification.value,
                error.status_code if error.status_code is not None else 'n/a',
                wait,
                state.attempt + 1,
                ceiling,
            )
            await self._sleep(wait)
