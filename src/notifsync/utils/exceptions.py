"""Custom exceptions for notifsync.

This module defines a hierarchy of exceptions for different error types:
- NotifsyncError: Base exception for all notifsync errors
- StorageError: Database/storage related errors
- ApiError: Remote notification service errors (with optional status code)
- ConfigurationError: Configuration related errors
- SupervisorError: Poll supervisor lifecycle errors

Remote submission and fetch failures are not raised: the API client reports
them as ``ApiResult.error`` and the orchestrator turns them into events.
"""

from typing import Optional


class NotifsyncError(Exception):
    """Base exception for all notifsync errors.

    All notifsync-specific exceptions inherit from this class, allowing
    callers to catch all notifsync errors with a single except clause.
    """

    pass


class StorageError(NotifsyncError):
    """Database/storage related errors.

    Raised when pending-queue persistence fails, such as:
    - Using storage before connect()
    - Unknown queue names
    """

    pass


class ApiError(NotifsyncError):
    """Remote notification service errors.

    Attributes:
        status_code: Optional HTTP status code from the service
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(NotifsyncError):
    """Configuration related errors.

    Raised when configuration is invalid or missing, such as:
    - Missing API base URL
    - Missing username
    """

    pass


class SupervisorError(NotifsyncError):
    """Poll supervisor lifecycle errors.

    Raised when a supervisor is started twice.
    """

    pass
