"""Sermon Annotator - LLM-generated metadata and radar evaluations for sermon manuscripts.

Reads Markdown manuscripts with YAML frontmatter, asks one or more language
model providers for narrative metadata and nine-category radar scores, and
rewrites each document with a merged header and a generated analysis section.
"""

__version__ = "0.1.0"
