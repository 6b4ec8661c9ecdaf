"""Processing-related exceptions for Sermon Annotator."""

from __future__ import annotations


class ProcessingError(Exception):
    """Base exception for processing-related errors."""

    def __init__(self, message: str, doc_id: str | None = None) -> None:
        """Initialize ProcessingError.

        Args:
            message: Error message.
            doc_id: Optional document identifier related to the error.
        """
        super().__init__(message)
        self.doc_id = doc_id


class ExtractionFailed(ProcessingError):
    """Exception raised when no structured object can be read from a reply."""

    def __init__(
            self,
            message: str,
            doc_id: str | None = None,
            response_text: str | None = None,
    ) -> None:
        """Initialize ExtractionFailed.

        Args:
            message: Error message.
            doc_id: Optional document identifier.
            response_text: Optional reply text that could not be parsed.
        """
        super().__init__(message, doc_id)
        self.response_text = response_text


class ValidationFailed(ProcessingError):
    """Exception raised when a document header fails validation."""

    def __init__(
            self,
            message: str,
            doc_id: str | None = None,
            problems: list[str] | None = None,
    ) -> None:
        """Initialize ValidationFailed.

        Args:
            message: Error message.
            doc_id: Optional document identifier.
            problems: Individual validation messages.
        """
        super().__init__(message, doc_id)
        self.problems = problems or []
