"""OpenRouter client implementation for gateway-style, multi-model access."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, ClassVar, TYPE_CHECKING

import aiohttp
import requests

from .base_client import Client
from .exceptions import (
    ClassifiedProviderError,
    ErrorClass,
    LLMClientError,
    LLMConnectionError,
    classify_http_error,
)
from .models import InvocationRequest, ModelInfo, ModelReply

if TYPE_CHECKING:  # Only for type-checkers; not needed at runtime.
    from aiohttp import ClientTimeout


class OpenRouterClient(Client):
    """Client for the OpenRouter chat completions gateway.

    Completions are sent asynchronously with aiohttp. Model discovery
    (``list_models``) is a synchronous helper used by the CLI only.
    """

    DEFAULT_BASE_URL: ClassVar[str] = 'https://openrouter.ai/api/v1'
    APP_REFERER: ClassVar[str] = 'https://sermon-curation-system'
    APP_TITLE: ClassVar[str] = 'Sermon Curation System'

    def __init__(
        self,
        api_key: str,
        default_model: str | None = None,
        *,
        base_url: str | None = None,
        timeout: int = 600,
    ) -> None:
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key.
            default_model: Model used when none is requested.
            base_url: Gateway base URL.
            timeout: Per-attempt request timeout in seconds.

        Raises:
            ValueError: If required parameters are missing.
        """
        if not api_key:
            raise ValueError('API key must be provided for OpenRouterClient.')
        if timeout <= 0:
            raise ValueError('timeout must be > 0.')

        super().__init__(default_model)

        self.api_key = api_key
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip('/')
        self.timeout = timeout

        logging.info(
            'OpenRouter Client initialized with default model=%s, base_url=%s, timeout=%ds',
            default_model,
            self.base_url,
            self.timeout,
        )

    def _build_headers(self) -> dict[str, str]:
        """Build headers for API requests.

        Returns:
            Dictionary of headers.
        """
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
            'HTTP-Referer': self.APP_REFERER,
            'X-Title': self.APP_TITLE,
        }

    @staticmethod
    def format_model_id(model_id: str) -> str:
        """Add a vendor prefix to a bare model id when it can be inferred.

        Args:
            model_id: Model identifier, with or without a vendor prefix.

        Returns:
            Gateway model identifier.
        """
        if '/' in model_id:
            return model_id
        if 'claude' in model_id:
            return f'anthropic/{model_id}'
        if 'gpt' in model_id or 'text-davinci' in model_id:
            return f'openai/{model_id}'
        return model_id

    def _build_payload(self, request: InvocationRequest) -> dict[str, Any]:
        """Build payload for a chat completion request."""
        return {
            'model': self.format_model_id(request.model),
            'messages': [m.to_dict() for m in request.messages],
            'temperature': request.temperature,
            'max_tokens': request.max_tokens,
        }

    def _extract_text_from_json(self, data: dict[str, Any]) -> str:
        """Extract the reply text from a chat completion payload.

        Raises:
            ClassifiedProviderError: If the payload carries an error or no text.
        """
        error = data.get('error')
        if error:
            code = error.get('code') if isinstance(error, dict) else None
            message = error.get('message') if isinstance(error, dict) else str(error)
            raise classify_http_error(
                f'OpenRouter returned an error payload: {message}',
                status_code=code if isinstance(code, int) else None,
                client_type=self.client_type,
                operation='send',
            )

        try:
            text = data['choices'][0]['message']['content'] or ''
        except (KeyError, IndexError, TypeError):
            text = ''
        if not isinstance(text, str) or not text:
            raise ClassifiedProviderError(
                'Invalid or empty response payload.',
                classification=ErrorClass.RETRYABLE,
                client_type=self.client_type,
                operation='send',
            )
        return text

    async def send(self, request: InvocationRequest) -> ModelReply:
        """Send one chat completion through the gateway.

        Args:
            request: The invocation request.

        Returns:
            The reply text from the selected model.

        Raises:
            ClassifiedProviderError: If the call fails.
        """
        self._validate_request(request)
        self._log_request(request)

        url = f'{self.base_url}/chat/completions'
        timeout_config: ClientTimeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.post(
                    url=url,
                    json=self._build_payload(request),
                    headers=self._build_headers(),
                ) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        raise classify_http_error(
                            f'OpenRouter API error: {response.status} {response.reason} - '
                            f'{error_text[:200]}',
                            status_code=response.status,
                            headers=response.headers,
                            client_type=self.client_type,
                            operation='send',
                        )
                    data = await response.json(content_type=None)
        except ClassifiedProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise LLMConnectionError(
                f'OpenRouter request timed out after {self.timeout}s',
                client_type=self.client_type,
                operation='send',
                endpoint=url,
            ) from e
        except aiohttp.ClientConnectionError as e:
            raise LLMConnectionError(
                f'Failed to connect to OpenRouter endpoint: {url}',
                client_type=self.client_type,
                operation='send',
                endpoint=url,
            ) from e
        except (aiohttp.ClientError, json.JSONDecodeError) as e:
            raise ClassifiedProviderError(
                f'OpenRouter API request failed: {e}',
                classification=ErrorClass.RETRYABLE,
                client_type=self.client_type,
                operation='send',
            ) from e

        text = self._extract_text_from_json(data)
        logging.info('Received OpenRouter response (length: %d)', len(text))
        return ModelReply(text=text, provider=self.client_type, model=request.model)

    def list_models(self) -> list[ModelInfo]:
        """Fetch the models available through the gateway.

        Returns:
            List of ModelInfo entries.

        Raises:
            LLMClientError: If the request fails.
        """
        url = f'{self.base_url}/models'
        try:
            response = requests.get(url, headers=self._build_headers(), timeout=60)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise LLMClientError(
                f'Failed to fetch models from OpenRouter: {e}',
                client_type=self.client_type,
                operation='list_models',
            ) from e
        except ValueError as e:
            raise LLMClientError(
                f'Invalid JSON from OpenRouter models endpoint: {e}',
                client_type=self.client_type,
                operation='list_models',
            ) from e

        models = [ModelInfo.from_api(item) for item in payload.get('data', [])]
        logging.info('Fetched %d models from OpenRouter', len(models))
        return models
