"""Input/Output operations for Sermon Annotator.

This package provides frontmatter document parsing and rewriting, the
document store, atomic output writers, and I/O exceptions.
"""

from .document import (
    Document,
    dump_header,
    parse_document,
    render_radar_section,
    rewrite,
    strip_sections,
)
from .exceptions import DocumentIOError, MalformedDocument, OutputError, StoreError
from .output_writers import OutputWriter
from .store import DocumentStore, FileDocumentStore

__all__ = [
    "Document",
    "dump_header",
    "parse_document",
    "render_radar_section",
    "rewrite",
    "strip_sections",
    "DocumentIOError",
    "MalformedDocument",
    "OutputError",
    "StoreError",
    "OutputWriter",
    "DocumentStore",
    "FileDocumentStore",
]
