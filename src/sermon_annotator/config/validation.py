"""Configuration validation for Sermon Annotator."""

from __future__ import annotations

import logging
from pathlib import Path

from .exceptions import ConfigError, ConfigValidationError
from .settings import Settings


class ConfigValidator:
    """Validates configuration settings before any provider is constructed."""

    @staticmethod
    def validate_for_provider(provider: str | None) -> None:
        """Validate configuration for the specified provider.

        Args:
            provider: 'openai', 'claude' or 'openrouter'.

        Raises:
            ConfigValidationError: If the provider is unset, unsupported, or
                required configuration is missing.
        """
        if not provider:
            raise ConfigValidationError(
                'No provider selected. Pass --provider or set LLM_PROVIDER.',
                missing_keys=['LLM_PROVIDER'],
            )

        if provider.lower() not in Settings.SUPPORTED_PROVIDERS:
            raise ConfigValidationError(
                f'Unsupported provider: {provider}. '
                f'Supported providers: {", ".join(Settings.SUPPORTED_PROVIDERS)}'
            )

        try:
            provider_configs = Settings.get_provider_required_configs(provider)
        except ConfigError as e:
            raise ConfigValidationError(str(e)) from e

        missing_configs = [key for key, value in provider_configs.items() if not value]
        if missing_configs:
            raise ConfigValidationError(
                f'Missing required configuration for {provider} provider: '
                f'{", ".join(missing_configs)}. Please set these in your '
                'environment variables or .env file.',
                missing_keys=missing_configs
            )

        logging.info('Configuration validation passed for %s provider', provider)

    @staticmethod
    def validate_batch_settings(batch_size: int, batch_delay: float) -> None:
        """Validate batch scheduling values.

        Raises:
            ConfigValidationError: If a value is out of range.
        """
        if batch_size < 1:
            raise ConfigValidationError(f'Batch size must be >= 1, got {batch_size}')
        if batch_delay < 0:
            raise ConfigValidationError(f'Batch delay must be >= 0, got {batch_delay}')

    @staticmethod
    def validate_input_path(path: str | Path) -> Path:
        """Validate that a document or collection path exists.

        Returns:
            The path as a Path object.

        Raises:
            ConfigValidationError: If the path does not exist.
        """
        input_path = Path(path)
        if not input_path.exists():
            raise ConfigValidationError(f'Input path does not exist: {input_path}')
        if input_path.is_file() and input_path.suffix.lower() != '.md':
            logging.warning('Input file %s does not have a .md extension', input_path)
        return input_path
