"""Provider client factory and registry for Sermon Annotator."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..config.settings import Settings
from .base_client import Client
from .claude_client import ClaudeClient
from .exceptions import LLMClientError
from .openai_client import OpenAIClient
from .openrouter_client import OpenRouterClient

SUPPORTED_PROVIDERS = ('openai', 'claude', 'openrouter')


def create_llm_client(provider: str, **kwargs: Any) -> Client:
    """Factory function to create provider clients.

    Note: This factory assumes configuration has already been validated
    by ConfigValidator.validate_for_provider() in the main application flow.

    Args:
        provider: 'openai', 'claude' or 'openrouter'.
        **kwargs: Overrides for client initialization (e.g. timeout).

    Returns:
        Initialized provider client.

    Raises:
        ValueError: If provider is empty.
        LLMClientError: If provider is unsupported or initialization fails.
    """
    if not provider:
        raise ValueError('provider must be provided')

    provider = provider.lower().strip()
    timeout = kwargs.pop('timeout', Settings.LLM_TIMEOUT)
    try:
        if provider == 'claude':
            return ClaudeClient(
                api_key=kwargs.pop('api_key', Settings.ANTHROPIC_API_KEY),
                default_model=kwargs.pop('default_model', Settings.CLAUDE_MODEL),
                timeout=timeout,
            )
        elif provider == 'openai':
            return OpenAIClient(
                api_key=kwargs.pop('api_key', Settings.OPENAI_API_KEY),
                default_model=kwargs.pop('default_model', Settings.OPENAI_MODEL),
                timeout=timeout,
            )
        elif provider == 'openrouter':
            return OpenRouterClient(
                api_key=kwargs.pop('api_key', Settings.OPENROUTER_API_KEY),
                default_model=kwargs.pop('default_model', Settings.OPENROUTER_MODEL),
                base_url=kwargs.pop('base_url', Settings.OPENROUTER_BASE_URL),
                timeout=int(timeout),
            )
        else:
            raise LLMClientError(
                f'Unsupported provider: {provider}. '
                f'Supported providers: {", ".join(SUPPORTED_PROVIDERS)}',
                client_type=provider,
                operation='factory_creation',
            )
    except LLMClientError:
        raise
    except Exception as e:
        logging.error(
            'Unexpected error creating %s client: %s',
            provider,
            e,
            exc_info=True,
        )
        raise LLMClientError(
            f'Failed to create {provider} client: {e}',
            client_type=provider,
            operation='factory_creation',
        ) from e


class ProviderRegistry:
    """Provider clients built once at startup and shared read-only.

    The registry is passed explicitly to whatever needs a client; nothing
    looks providers up through module-level state.
    """

    def __init__(self, clients: dict[str, Client] | None = None) -> None:
        """Initialize the registry.

        Args:
            clients: Mapping of provider name to client.
        """
        self._clients: dict[str, Client] = dict(clients or {})

    @classmethod
    def from_settings(cls, providers: Iterable[str]) -> ProviderRegistry:
        """Construct clients for the given providers from Settings.

        Args:
            providers: Provider names to build.

        Returns:
            A populated registry.

        Raises:
            LLMClientError: If any client cannot be created.
        """
        registry = cls()
        for provider in dict.fromkeys(p.lower() for p in providers if p):
            registry.register(provider, create_llm_client(provider))
        logging.info('Provider registry initialized: %s', ', '.join(registry.providers) or 'none')
        return registry

    def register(self, provider: str, client: Client) -> None:
        """Add or replace the client for a provider."""
        self._clients[provider.lower()] = client

    def get(self, provider: str) -> Client:
        """Return the client for a provider.

        Raises:
            LLMClientError: If the provider was not configured at startup.
        """
        if not provider:
            raise LLMClientError('Provider must be specified', operation='registry_lookup')
        try:
            return self._clients[provider.lower()]
        except KeyError:
            raise LLMClientError(
                f'Provider {provider!r} is not configured. '
                f'Available: {", ".join(self.providers) or "none"}',
                client_type=provider,
                operation='registry_lookup',
            ) from None

    @property
    def providers(self) -> list[str]:
        """Names of the registered providers."""
        return sorted(self._clients)

    def __contains__(self, provider: object) -> bool:
        return isinstance(provider, str) and provider.lower() in self._clients

    async def aclose(self) -> None:
        """Close every registered client."""
        for provider, client in self._clients.items():
            try:
                await client.aclose()
            except Exception as e:
                logging.debug('Error closing %s client: %s', provider, e, exc_info=True)
