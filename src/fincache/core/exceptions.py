"""Errors raised by the cache, its stores and its data source."""

from typing import Optional


class AppError(Exception):
    """
    Root of every error the cache raises on purpose.

    `code` is the machine-readable tag the API puts in error bodies and
    `http_status` the status it answers with.
    """

    http_status = 400

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Bad caller input: blank symbol, missing owner, no storage tier."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class DataSourceError(AppError):
    """The provider could not deliver statements; `status` is the upstream HTTP code if any."""

    http_status = 502

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message, code="DATA_SOURCE_ERROR")


class StorageError(AppError):
    """A store read or write failed."""

    def __init__(self, message: str, code: str = "STORAGE_ERROR"):
        super().__init__(message, code=code)


class QuotaExceededError(StorageError):
    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Storage quota exceeded: requested {requested} bytes, available {available} bytes",
            code="QUOTA_EXCEEDED",
        )
