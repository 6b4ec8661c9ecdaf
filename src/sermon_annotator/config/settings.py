"""Configuration settings for the sermon annotation application.

This module provides configuration management with environment variables
loading (via a .env file when present) and provider-specific lookups.
"""

import logging
import os
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from .exceptions import ConfigError

if TYPE_CHECKING:
    from ..llm.retry import RetryPolicy

# Load environment variables from .env file
load_dotenv()


def _env_float(key: str, default: float) -> float:
    """Read a float from the environment, keeping the default on bad input."""
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logging.warning('Ignoring invalid value for %s: %r (using %s)', key, raw, default)
        return default


def _env_int(key: str, default: int) -> int:
    """Read an int from the environment, keeping the default on bad input."""
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.warning('Ignoring invalid value for %s: %r (using %s)', key, raw, default)
        return default


class Settings:
    """Configuration settings for the sermon annotation application.

    Loads configuration from environment variables. Values are read once at
    import time and treated as read-only afterwards.

    Attributes:
        OPENAI_API_KEY: API key for the OpenAI service.
        ANTHROPIC_API_KEY: API key for the Anthropic Claude service.
        OPENROUTER_API_KEY: API key for the OpenRouter gateway.
        OPENROUTER_BASE_URL: Base URL of the OpenRouter gateway.
        OPENAI_MODEL: Default OpenAI model.
        CLAUDE_MODEL: Default Claude model.
        OPENROUTER_MODEL: Default OpenRouter model.
        LLM_PROVIDER: Provider used when the CLI gets no --provider flag.
        FALLBACK_MODEL: Model re-tried once when a document fails.
        FALLBACK_PROVIDER: Provider for FALLBACK_MODEL (defaults to the primary).
        LLM_TEMPERATURE: Sampling temperature for every request.
        LLM_MAX_TOKENS: Maximum output tokens for every request.
        LLM_TIMEOUT: Per-attempt provider timeout in seconds.
        BATCH_SIZE: Documents processed concurrently per group.
        BATCH_DELAY: Seconds to wait between groups.
        SECTION_NAME: Heading of the generated evaluation section.
    """

    # API Configuration
    OPENAI_API_KEY: str | None = os.getenv('OPENAI_API_KEY')
    ANTHROPIC_API_KEY: str | None = os.getenv('ANTHROPIC_API_KEY')
    OPENROUTER_API_KEY: str | None = os.getenv('OPENROUTER_API_KEY')
    OPENROUTER_BASE_URL: str = os.getenv('OPENROUTER_BASE_URL', 'https://openrouter.ai/api/v1')

    # Model Configuration
    OPENAI_MODEL: str = os.getenv('OPENAI_MODEL', 'gpt-4')
    CLAUDE_MODEL: str = os.getenv('CLAUDE_MODEL', 'claude-3-7-sonnet-20250219')
    OPENROUTER_MODEL: str = os.getenv('OPENROUTER_MODEL', 'anthropic/claude-3.7-sonnet')
    LLM_PROVIDER: str | None = os.getenv('LLM_PROVIDER')
    FALLBACK_MODEL: str | None = os.getenv('FALLBACK_MODEL')
    FALLBACK_PROVIDER: str | None = os.getenv('FALLBACK_PROVIDER')

    # Request Configuration
    LLM_TEMPERATURE: float = _env_float('LLM_TEMPERATURE', 0.3)
    LLM_MAX_TOKENS: int = _env_int('LLM_MAX_TOKENS', 1500)
    LLM_TIMEOUT: int = _env_int('LLM_TIMEOUT', 600)

    # Retry Configuration
    RETRY_RATE_LIMIT_WAIT: float = _env_float('RETRY_RATE_LIMIT_WAIT', 2.0)
    RETRY_OVERLOAD_BASE: float = _env_float('RETRY_OVERLOAD_BASE', 5.0)
    RETRY_RETRYABLE_BASE: float = _env_float('RETRY_RETRYABLE_BASE', 3.0)
    RETRY_MAX_ATTEMPTS_RATE_LIMITED: int = _env_int('RETRY_MAX_ATTEMPTS_RATE_LIMITED', 4)
    RETRY_MAX_ATTEMPTS_OVERLOADED: int = _env_int('RETRY_MAX_ATTEMPTS_OVERLOADED', 6)
    RETRY_MAX_ATTEMPTS_RETRYABLE: int = _env_int('RETRY_MAX_ATTEMPTS_RETRYABLE', 3)
    RETRY_MAX_TOTAL_WAIT: float = _env_float('RETRY_MAX_TOTAL_WAIT', 600.0)

    # Batch Configuration
    BATCH_SIZE: int = _env_int('BATCH_SIZE', 5)
    BATCH_DELAY: float = _env_float('BATCH_DELAY', 10.0)

    # Document Configuration
    SECTION_NAME: str = os.getenv('SECTION_NAME', 'Radar Analysis')

    SUPPORTED_PROVIDERS: tuple[str, ...] = ('openai', 'claude', 'openrouter')

    @classmethod
    def default_model_for(cls, provider: str) -> str:
        """Return the configured default model for a provider.

        Raises:
            ConfigError: If the provider is unsupported.
        """
        provider = provider.lower()
        if provider == 'openai':
            return cls.OPENAI_MODEL
        if provider == 'claude':
            return cls.CLAUDE_MODEL
        if provider == 'openrouter':
            return cls.OPENROUTER_MODEL
        raise ConfigError(f'Unsupported provider: {provider}', config_key='LLM_PROVIDER')

    @classmethod
    def get_provider_required_configs(cls, provider: str) -> dict[str, str | None]:
        """Get required configurations for the specified provider.

        Args:
            provider: 'openai', 'claude' or 'openrouter'.

        Returns:
            Dictionary of required configuration keys and their values.

        Raises:
            ConfigError: If provider is unsupported.
        """
        provider = provider.lower()

        if provider == 'openai':
            return {'OPENAI_API_KEY': cls.OPENAI_API_KEY}
        elif provider == 'claude':
            return {'ANTHROPIC_API_KEY': cls.ANTHROPIC_API_KEY}
        elif provider == 'openrouter':
            return {
                'OPENROUTER_API_KEY': cls.OPENROUTER_API_KEY,
                'OPENROUTER_BASE_URL': cls.OPENROUTER_BASE_URL,
            }
        else:
            raise ConfigError(f'Unsupported provider: {provider}', config_key='LLM_PROVIDER')

    @classmethod
    def retry_policy(cls) -> 'RetryPolicy':
        """Build the retry policy from the configured ceilings and bases.

        Raises:
            ConfigError: If the configured values are invalid.
        """
        # Imported here: the llm package imports this module at load time.
        from ..llm.retry import RetryPolicy

        try:
            return RetryPolicy(
                rate_limit_wait=cls.RETRY_RATE_LIMIT_WAIT,
                overload_base=cls.RETRY_OVERLOAD_BASE,
                retryable_base=cls.RETRY_RETRYABLE_BASE,
                max_attempts_rate_limited=cls.RETRY_MAX_ATTEMPTS_RATE_LIMITED,
                max_attempts_overloaded=cls.RETRY_MAX_ATTEMPTS_OVERLOADED,
                max_attempts_retryable=cls.RETRY_MAX_ATTEMPTS_RETRYABLE,
                max_total_wait=cls.RETRY_MAX_TOTAL_WAIT if cls.RETRY_MAX_TOTAL_WAIT > 0 else None,
            )
        except ValueError as e:
            raise ConfigError(f'Invalid retry configuration: {e}') from e
