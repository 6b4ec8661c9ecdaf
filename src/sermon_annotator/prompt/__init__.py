"""Prompt building and template management for Sermon Annotator."""

from .builder import MetadataPromptBuilder, PromptBuilder, RadarPromptBuilder
from .exceptions import PromptBuildError, PromptError, TemplateNotFoundError

__all__ = [
    "PromptBuilder",
    "MetadataPromptBuilder",
    "RadarPromptBuilder",
    "PromptError",
    "TemplateNotFoundError",
    "PromptBuildError",
]
