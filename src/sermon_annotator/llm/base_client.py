"""Base LLM client abstract class.

Defines the single capability every provider adapter exposes: ``send``.
Adapters convert their own failures into ``ClassifiedProviderError`` so the
resilient invoker can apply one retry policy to every provider.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from .exceptions import LLMValidationError
from .models import InvocationRequest, ModelReply


class Client(ABC):
    """Abstract base class for LLM provider clients.

    Subclasses implement ``send``; they must not retry internally.
    """

    def __init__(self, default_model: str | None = None) -> None:
        """Initialize the client.

        Args:
            default_model: Model used when a caller has no explicit choice.
        """
        self.default_model = default_model
        self._tokenizer: Any = None
        logging.info(
            f'Initializing LLM client {self.__class__.__name__} '
            f'(default model: {self.default_model or "none"})'
        )

    # ----------------------------------------------------------------------
    # Properties / helpers
    # ----------------------------------------------------------------------
    @property
    def client_type(self) -> str:
        """Return the type of LLM client (e.g., 'claude', 'openai')."""
        return self.__class__.__name__.removesuffix('Client').lower()

    def _validate_request(self, request: InvocationRequest) -> None:
        """Reject requests addressed to another provider.

        Raises:
            LLMValidationError: If the request names a different provider.
        """
        if request.provider != self.client_type:
            raise LLMValidationError(
                f'Request for provider {request.provider!r} sent to {self.client_type} client',
                client_type=self.client_type,
                operation='send',
                field='provider',
                value=request.provider,
            )

    def _count_tokens(self, text: str) -> int:
        """Count tokens in text using the client's tokenizer, if any.

        Args:
            text: Text to count tokens for.

        Returns:
            Number of tokens in the text, 0 when no tokenizer is available.
        """
        if self._tokenizer is None:
            return 0
        try:
            return len(self._tokenizer.encode(text))
        except Exception as e:
            logging.debug('Token counting failed: %s', e, exc_info=True)
            return 0

    def _log_request(self, request: InvocationRequest) -> None:
        """Log request size without logging its content."""
        prompt_text = '\n'.join(m.content for m in request.messages)
        logging.info(
            'Sending request to %s model=%s (messages: %d, chars: %d, tokens: %d)',
            self.client_type,
            request.model,
            len(request.messages),
            len(prompt_text),
            self._count_tokens(prompt_text),
        )

    # ----------------------------------------------------------------------
    # Provider capability
    # ----------------------------------------------------------------------
    @abstractmethod
    async def send(self, request: InvocationRequest) -> ModelReply:
        """Perform one completion call against the provider.

        Args:
            request: Fully specified invocation request.

        Returns:
            The provider's reply.

        Raises:
            ClassifiedProviderError: If the provider call fails.
            LLMValidationError: If the request is invalid for this client.
        """

    async def aclose(self) -> None:
        """Release network resources held by the client."""
