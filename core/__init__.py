"""
Core utilities and configuration for the generative ETL service.

This package provides foundational components used throughout the service:

Modules:
    config: Application configuration and environment variable management
    database: Async engine, session factory and connectivity check
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import async_session_maker, check_connection
    from core.exceptions import ConfigurationError, GenerationError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Get database session
    async with async_session_maker() as session:
        store = RecordStore(session)
"""

__all__ = [
    "settings",
    "validate_config",
    "get_session",
    "check_connection",
    "setup_logging",
    # Exceptions
    "ETLException",
    "ConfigurationError",
    "ExtractionError",
    "APIExtractionError",
    "FileExtractionError",
    "TransformationError",
    "GenerationError",
    "GenerationConnectionError",
    "GenerationTimeoutError",
    "GenerationResponseError",
    "LoadError",
    "DatabaseError",
    "FileLoadError",
    "RecordNotFoundError",
    "APIKeyError",
    "RetryableError",
    "NonRetryableError",
    "NetworkError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "error_message",
]
