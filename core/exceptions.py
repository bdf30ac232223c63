"""
Custom exceptions for the ETL service with structured error context.

This module provides the exception hierarchy used throughout the
extract, transform and load phases. Each exception carries context
information for debugging plus the HTTP status the API layer reports.

Exception Hierarchy:
    ETLException (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   ├── APIExtractionError
    │   └── FileExtractionError
    ├── TransformationError
    ├── GenerationError
    │   ├── GenerationConnectionError
    │   ├── GenerationTimeoutError
    │   └── GenerationResponseError
    ├── LoadError
    │   ├── DatabaseError
    │   └── FileLoadError
    ├── RecordNotFoundError
    ├── APIKeyError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime


class ETLException(Exception):
    """
    Base exception for all ETL-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, timestamp, etc.)
        original_exception: The original exception that was caught (if any)
        status_code: HTTP status reported when the error reaches the API
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()
        if status_code is not None:
            self.status_code = status_code

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "status": self.status_code,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(ETLException):
    """
    Raised when a caller-supplied option is missing or invalid.

    Examples: no instruction for enrichment, no schema for validation,
    an unknown source type. Blocks only the call that received it.
    """
    status_code = 400


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class APIExtractionError(ExtractionError):
    """
    Exception raised when API data extraction fails.

    Context should include:
        - api_url: The API endpoint that failed
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated if large)
        - retry_count: Number of retries attempted
    """
    pass


class FileExtractionError(ExtractionError):
    """
    Exception raised when reading a source file fails.

    Context should include:
        - file_path: Path to the file
        - file_format: Format the file was parsed as
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


# ============================================================================
# Text Generation Errors
# ============================================================================

class GenerationError(ETLException):
    """
    Failure at the text-generation boundary.

    The enricher catches these per item; they only reach the API layer
    from endpoints that call the generator directly.
    """
    status_code = 503


class GenerationConnectionError(GenerationError):
    """The generation service refused or dropped the connection."""
    status_code = 503


class GenerationTimeoutError(GenerationError):
    """The generation call exceeded its timeout."""
    status_code = 504


class GenerationResponseError(GenerationError):
    """The generation service answered with a body we cannot use."""
    status_code = 502


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class DatabaseError(LoadError):
    """
    Exception raised when database operations fail.

    Context should include:
        - operation: Type of database operation (INSERT, UPDATE, SELECT)
        - table_name: Name of the table
    """
    pass


class FileLoadError(LoadError):
    """
    Exception raised when writing a destination file fails.

    Context should include:
        - file_path: Destination path
        - file_format: Format being written
    """
    pass


class RecordNotFoundError(ETLException):
    """Raised when a stored record id does not exist."""
    status_code = 404


class APIKeyError(ETLException):
    """Missing (401) or wrong (403) X-API-Key header."""
    status_code = 401


# ============================================================================
# Retry classification (used by the API extractor)
# ============================================================================

class RetryableError(ETLException):
    """Transient failure: the request may succeed if sent again later."""
    pass


class NonRetryableError(ETLException):
    """Permanent failure: sending the same request again cannot help."""
    pass


class NetworkError(RetryableError, APIExtractionError):
    """Timeout, dropped connection or 5xx answer."""
    status_code = 502


class RateLimitError(RetryableError, APIExtractionError):
    """HTTP 429; `retry_after` is the server's Retry-After in seconds, if any."""
    status_code = 429

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after
        if retry_after is not None:
            self.context["retry_after"] = retry_after


class AuthenticationError(NonRetryableError, APIExtractionError):
    """HTTP 401/403 from the source API."""
    status_code = 400


class ResourceNotFoundError(NonRetryableError, APIExtractionError):
    """HTTP 404 from the source API."""
    status_code = 404


def error_message(error: Exception) -> str:
    """Short message for reports: ETLException.message without context, else str()"""
    if isinstance(error, ETLException):
        return error.message
    return str(error)
