"""OpenAI client implementation using the OpenAI Chat Completions API."""

from __future__ import annotations

import logging
from typing import ClassVar

import openai
import tiktoken

from .base_client import Client
from .exceptions import (
    AuthenticationError,
    ClassifiedProviderError,
    ErrorClass,
    LLMClientError,
    LLMConnectionError,
    classify_http_error,
)
from .models import InvocationRequest, ModelReply


class OpenAIClient(Client):
    """Client for interacting with OpenAI chat models.

    The SDK's own retry loop is disabled; retries belong to the invoker.
    """

    DEFAULT_TIMEOUT: ClassVar[float] = 600.0

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        """Initialize an OpenAI client.

        Args:
            api_key: OpenAI API key.
            default_model: Model used when none is requested.
            timeout: Per-attempt request timeout in seconds.

        Raises:
            ValueError: If required parameters are missing or invalid.
            LLMClientError: If client initialization fails.
        """
        if not api_key:
            raise ValueError('API key must be provided for OpenAIClient.')
        if timeout is None:
            timeout = self.DEFAULT_TIMEOUT
        if timeout <= 0:
            raise ValueError('timeout must be > 0.')

        super().__init__(default_model)
        self.timeout = timeout

        try:
            self.async_client = openai.AsyncOpenAI(
                api_key=api_key,
                max_retries=0,
                timeout=timeout,
            )
        except Exception as e:
            raise LLMClientError(
                f'Failed to initialize OpenAI client: {e}',
                client_type=self.client_type,
                operation='initialization'
            ) from e

        try:
            self._tokenizer = tiktoken.get_encoding('cl100k_base')
        except Exception as e:
            logging.debug('Tokenizer unavailable: %s', e, exc_info=True)

        logging.info(
            'OpenAI Client initialized with default model=%s, timeout=%.0fs',
            default_model,
            timeout,
        )

    def _classify(self, exc: Exception) -> ClassifiedProviderError:
        """Convert an OpenAI SDK exception into the shared taxonomy."""
        if isinstance(exc, openai.AuthenticationError):
            return AuthenticationError(
                f'OpenAI authentication failed: {exc}',
                client_type=self.client_type,
                operation='send',
                status_code=getattr(exc, 'status_code', None),
            )
        if isinstance(exc, openai.APIConnectionError):
            return LLMConnectionError(
                f'Failed to reach OpenAI API: {exc}',
                client_type=self.client_type,
                operation='send',
            )
        if isinstance(exc, openai.APIStatusError):
            return classify_http_error(
                f'OpenAI API error: {exc}',
                status_code=exc.status_code,
                headers=exc.response.headers,
                client_type=self.client_type,
                operation='send',
            )
        return ClassifiedProviderError(
            f'OpenAI API call failed: {exc}',
            classification=ErrorClass.UNRECOVERABLE,
            client_type=self.client_type,
            operation='send',
        )

    async def send(self, request: InvocationRequest) -> ModelReply:
        """Call the Chat Completions API once.

        Args:
            request: The invocation request.

        Returns:
            The reply text from the model.

        Raises:
            ClassifiedProviderError: If the API call fails.
        """
        self._validate_request(request)
        self._log_request(request)

        try:
            response = await self.async_client.chat.completions.create(
                model=request.model,
                messages=[m.to_dict() for m in request.messages],
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except openai.OpenAIError as e:
            raise self._classify(e) from e

        text = ''
        if response.choices:
            text = response.choices[0].message.content or ''
        if not text:
            raise ClassifiedProviderError(
                'Empty response received from OpenAI API',
                classification=ErrorClass.RETRYABLE,
                client_type=self.client_type,
                operation='send',
            )
        logging.info('Received OpenAI response (length: %d)', len(text))
        return ModelReply(text=text, provider=self.client_type, model=request.model)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.async_client.close()
