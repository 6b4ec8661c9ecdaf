"""Input/Output exceptions for Sermon Annotator."""

from __future__ import annotations


class DocumentIOError(Exception):
    """Base class for all document I/O exceptions."""

    def __init__(self, message: str, file_path: str | None = None) -> None:
        """Initialize DocumentIOError

        Args:
            message: Error message.
            file_path: Optional file path or document id related to the error.
        """
        super().__init__(message)
        self.file_path = file_path


class MalformedDocument(DocumentIOError):
    """Exception raised when a document's frontmatter cannot be parsed."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        reason: str | None = None
    ) -> None:
        """Initialize MalformedDocument.

        Args:
            message: Error message.
            file_path: Optional document id.
            reason: Short reason code ('unterminated', 'yaml', 'not_mapping').
        """
        super().__init__(message, file_path)
        self.reason = reason


class StoreError(DocumentIOError):
    """Exception raised when reading or writing a stored document fails."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        operation: str | None = None
    ) -> None:
        """Initialize StoreError.

        Args:
            message: Error message.
            file_path: Optional document id.
            operation: 'read', 'write' or 'discover'.
        """
        super().__init__(message, file_path)
        self.operation = operation


class OutputError(DocumentIOError):
    """Exception raised for output operations errors."""

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        output_type: str | None = None
    ) -> None:
        """Initialize OutputError.

        Args:
            message: Error message.
            file_path: Optional output file path.
            output_type: Optional type of output operation.
        """
        super().__init__(message, file_path)
        self.output_type = output_type
