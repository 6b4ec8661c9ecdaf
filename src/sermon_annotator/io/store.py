"""Document storage for Sermon Annotator.

Documents are addressed by an opaque id. The file store uses filesystem
paths as ids and writes through OutputWriter for atomic replacement.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from .exceptions import OutputError, StoreError
from .output_writers import OutputWriter, Pathish


class DocumentStore(ABC):
    """Read/write access to whole documents."""

    @abstractmethod
    def read(self, doc_id: str) -> str:
        """Return the full text of a document.

        Raises:
            StoreError: If the document cannot be read.
        """

    @abstractmethod
    def write(self, doc_id: str, text: str) -> None:
        """Replace a document's full text.

        Raises:
            StoreError: If the document cannot be written.
        """


class FileDocumentStore(DocumentStore):
    """Markdown files on disk, written atomically."""

    DEFAULT_ENCODING: ClassVar[str] = 'utf-8'
    DOCUMENT_GLOB: ClassVar[str] = '*.md'

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        self.encoding = encoding
        self._writer = OutputWriter(encoding=encoding)

    def read(self, doc_id: str) -> str:
        path = Path(doc_id)
        try:
            return path.read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(
                f'Failed to read {path}: {e}',
                file_path=str(path),
                operation='read',
            ) from e

    def write(self, doc_id: str, text: str) -> None:
        try:
            self._writer.write_text(doc_id, text)
        except OutputError as e:
            raise StoreError(
                f'Failed to write {doc_id}: {e}',
                file_path=doc_id,
                operation='write',
            ) from e
        logging.info('Updated %s', doc_id)

    @classmethod
    def find_documents(cls, path: Pathish) -> list[str]:
        """Discover documents under a file or directory path.

        Args:
            path: A single document or a directory searched recursively.

        Returns:
            Document ids in sorted order.

        Raises:
            StoreError: If the path does not exist.
        """
        root = Path(path)
        if root.is_file():
            return [str(root)]
        if not root.is_dir():
            raise StoreError(
                f'Path does not exist: {root}',
                file_path=str(root),
                operation='discover',
            )
        documents = sorted(str(p) for p in root.rglob(cls.DOCUMENT_GLOB) if p.is_file())
        logging.info('Found %d documents under %s', len(documents), root)
        return documents
