"""Configuration management for Sermon Annotator.

This package provides environment-based settings loading, validation, and
error handling for the annotation pipeline.
"""

from .exceptions import ConfigError, ConfigValidationError
from .settings import Settings
from .validation import ConfigValidator

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "Settings",
    "ConfigValidator",
]
