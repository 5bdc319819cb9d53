"""
Custom exceptions for the Teletype manual converter.

Error severity:
  - DocsSourceError      → NON-FATAL: logged, the pipeline continues with an empty document.
  - OperationTableError  → raised only by a strict OperationTableConverter; the
                           default converter logs and converts rows best-effort.
  - DocumentAPIError     → FAIL HARD: a request to the document API failed.
  - ConfigurationError   → FAIL HARD: publishing without credentials or a parent page.

Unrecognised markup is never an error: the classifier yields no block for it.
"""

from typing import Optional


class ConverterError(Exception):
    """Base exception for all converter errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- NON-FATAL: the docs source falls back or degrades to "" ---

class DocsSourceError(ConverterError):
    """Raised when the manual can be neither read from the cache nor fetched."""
    pass


# --- Raised only in strict mode ---

class OperationTableError(ConverterError):
    """
    Raised when an operation table row does not have the expected shape.
    """

    def __init__(
        self,
        message: str,
        row_index: int,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.row_index = row_index


# --- FAIL HARD: stops publishing ---

class DocumentAPIError(ConverterError):
    """Raised when a document API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.status_code = status_code

    def to_response(self) -> dict:
        """Convert to a JSON-friendly error report."""
        return {
            "error": "DocumentAPIError",
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details
        }


class ConfigurationError(ConverterError):
    """Raised when settings are missing something publishing needs."""
    pass
