"""Processing module for sermon annotation with LLM services.

This package provides the radar evaluation models, response extraction,
the metadata merge policy and header validation. The per-document pipeline
lives in ``processing.processor`` and is imported from there directly, since
it depends on the io package which itself uses these models.
"""

# Data models and entities
from .entities import (
    NO_EVALUATION,
    RADAR_CATEGORIES,
    AnnotationResult,
    EvaluationResult,
    ModelTarget,
    ProcessingOptions,
    format_category_name,
)

# Extraction, merging, validation and comparison
from .comparison import ComparisonReport, compare_evaluations
from .defaults import complete_header, manuscript_path
from .extractor import ResponseExtractor
from .merger import MetadataMerger
from .validator import HeaderValidator

# Exceptions
from .exceptions import ExtractionFailed, ProcessingError, ValidationFailed

__all__ = [
    # Data models
    "NO_EVALUATION",
    "RADAR_CATEGORIES",
    "AnnotationResult",
    "EvaluationResult",
    "ModelTarget",
    "ProcessingOptions",
    "format_category_name",

    # Processing components
    "ResponseExtractor",
    "MetadataMerger",
    "HeaderValidator",
    "ComparisonReport",
    "complete_header",
    "manuscript_path",
    "compare_evaluations",

    # Exceptions
    "ProcessingError",
    "ExtractionFailed",
    "ValidationFailed",
]
