"""Claude client implementation using Anthropic Claude API."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

import anthropic
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


class ClaudeClient(Client):
    """Client for interacting with Claude using the Anthropic Messages API.

    The SDK's own retry loop is disabled; retries belong to the invoker.
    """

    # Reasonable bounds for request validation
    MAX_ALLOWED_TOKENS: ClassVar[int] = 20000
    DEFAULT_TIMEOUT: ClassVar[float] = 600.0

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        """Initialize a Claude client.

        Args:
            api_key: Anthropic API key.
            default_model: Claude model used when none is requested.
            timeout: Per-attempt request timeout in seconds.

        Raises:
            ValueError: If required parameters are missing or invalid.
            LLMClientError: If client initialization fails.
        """
        if not api_key:
            raise ValueError('API key must be provided for ClaudeClient.')
        if timeout is None:
            timeout = self.DEFAULT_TIMEOUT
        if timeout <= 0:
            raise ValueError('timeout must be > 0.')

        # Initialize base class
        super().__init__(default_model)
        self.timeout = timeout

        try:
            self.async_client = anthropic.AsyncAnthropic(
                api_key=api_key,
                max_retries=0,
                timeout=timeout,
            )
        except Exception as e:
            raise LLMClientError(
                f'Failed to initialize Claude client: {e}',
                client_type=self.client_type,
                operation='initialization'
            ) from e

        try:
            self._tokenizer = tiktoken.get_encoding('cl100k_base')
        except Exception as e:
            # Token counts are informational only.
            logging.debug('Tokenizer unavailable: %s', e, exc_info=True)

        logging.info(
            'Claude Client initialized with default model=%s, timeout=%.0fs',
            default_model,
            timeout,
        )

    def _message_payload(self, request: InvocationRequest) -> dict[str, Any]:
        """Build a non-streaming Messages.create params object.

        Args:
            request: The invocation request.

        Returns:
            A dictionary matching the Messages API schema.
        """
        payload: dict[str, Any] = {
            'model': request.model,
            'messages': request.conversation,
            'max_tokens': min(request.max_tokens, self.MAX_ALLOWED_TOKENS),
            'temperature': request.temperature,
        }
        system_prompt = request.system_prompt
        if system_prompt:
            payload['system'] = system_prompt
        return payload

    @staticmethod
    def _extract_response_text(message: Any) -> str:
        """Extract plain text from an Anthropic message object.

        Args:
            message: Anthropic message returned by messages.create.

        Returns:
            The concatenated text blocks, or empty string if none found.
        """
        content = getattr(message, 'content', None)
        if isinstance(content, str):
            return content
        if not content:
            return ''

        text_parts: list[str] = []
        for block in content:
            if getattr(block, 'type', None) == 'text':
                text_parts.append(getattr(block, 'text', '') or '')
        return ''.join(text_parts)

    def _classify(self, exc: Exception) -> ClassifiedProviderError:
        """Convert an Anthropic SDK exception into the shared taxonomy."""
        if isinstance(exc, anthropic.AuthenticationError):
            return AuthenticationError(
                f'Claude authentication failed: {exc}',
                client_type=self.client_type,
                operation='send',
                status_code=getattr(exc, 'status_code', None),
            )
        if isinstance(exc, anthropic.APIConnectionError):
            # Includes APITimeoutError.
            return LLMConnectionError(
                f'Failed to reach Claude API: {exc}',
                client_type=self.client_type,
                operation='send',
            )
        if isinstance(exc, anthropic.APIStatusError):
            return classify_http_error(
                f'Claude API error: {exc}',
                status_code=exc.status_code,
                headers=exc.response.headers,
                client_type=self.client_type,
                operation='send',
            )
        return ClassifiedProviderError(
            f'Claude API call failed: {exc}',
            classification=ErrorClass.UNRECOVERABLE,
            client_type=self.client_type,
            operation='send',
        )

    async def send(self, request: InvocationRequest) -> ModelReply:
        """Call the Claude Messages API once.

        Args:
            request: The invocation request.

        Returns:
            The reply text from the Claude model.

        Raises:
            ClassifiedProviderError: If the API call fails.
        """
        self._validate_request(request)
        self._log_request(request)

        try:
            response = await self.async_client.messages.create(
                **self._message_payload(request)
            )
        except anthropic.AnthropicError as e:
            raise self._classify(e) from e

        text = self._extract_response_text(response)
        if not text:
            raise ClassifiedProviderError(
                'Empty response received from Claude API',
                classification=ErrorClass.RETRYABLE,
                client_type=self.client_type,
                operation='send',
            )
        logging.info('Received Claude response (length: %d)', len(text))
        return ModelReply(text=text, provider=self.client_type, model=request.model)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.async_client.close()
