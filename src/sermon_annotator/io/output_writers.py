"""Output writing operations for Sermon Annotator.

Every write goes through a temporary file in the target directory followed
by an atomic replace, so a document is either fully rewritten or left
untouched.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, ClassVar

from .exceptions import OutputError

Pathish = str | Path  # Type alias for path-like objects


class OutputWriter:
    """Atomic writer for documents and JSON reports."""

    DEFAULT_ENCODING: ClassVar[str] = 'utf-8'

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        """Initialize the OutputWriter.

        Args:
            encoding: Text encoding used for all writes.
        """
        self.encoding = encoding
        logging.debug('OutputWriter initialized with encoding: %s', self.encoding)

    @staticmethod
    def _ensure_output_directory(file_path: Pathish) -> Path:
        """Ensure the output directory exists.

        Raises:
            OutputError: If the output directory cannot be created.
        """
        path = Path(file_path)
        directory = path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            return path
        except OSError as e:
            raise OutputError(
                f'Failed to create output directory {directory}: {e}',
                file_path=str(file_path),
            ) from e

    @staticmethod
    def _atomic_write(file_path: Path, content: str, encoding: str) -> None:
        """Atomically write content to a file.

        Args:
            file_path: Path to the output file.
            content: Content to write to the file.
            encoding: Text encoding used for writing.

        Raises:
            OutputError: If the atomic write fails.
        """
        temp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                    mode='w',
                    delete=False,
                    dir=file_path.parent,
                    encoding=encoding,
                    newline='',
                    prefix=f'.{file_path.name}.',
                    suffix='.tmp'
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(content)
            # Atomically replace the target file
            temp_path.replace(file_path)
            logging.debug('Atomic write completed for: %s', file_path)
        except (OSError, UnicodeEncodeError) as e:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    logging.debug('Could not remove temp file %s', temp_path)
            raise OutputError(
                f'Atomic write failed for {file_path}: {e}',
                file_path=str(file_path),
                output_type='atomic_write'
            ) from e

    def write_text(self, file_path: Pathish, content: str) -> None:
        """Atomically replace a file with the given text.

        Raises:
            OutputError: If the write fails.
        """
        path = self._ensure_output_directory(file_path)
        self._atomic_write(path, content, self.encoding)

    def write_json(self, file_path: Pathish, data: dict[str, Any]) -> None:
        """Atomically write a JSON report.

        Args:
            file_path: Output JSON file path.
            data: JSON-serializable mapping.

        Raises:
            OutputError: If serialization or writing fails.
        """
        path = self._ensure_output_directory(file_path)
        try:
            content = json.dumps(data, indent=2, ensure_ascii=False, default=str) + '\n'
        except (TypeError, ValueError) as e:
            raise OutputError(
                f'Failed to serialize JSON for {path}: {e}',
                file_path=str(path),
                output_type='json',
            ) from e
        self._atomic_write(path, content, self.encoding)
        logging.info('JSON written to %s', path)
