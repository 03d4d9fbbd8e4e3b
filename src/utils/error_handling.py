"""Custom exceptions and helpers for consistent error responses."""

from typing import Any, Dict

from utils.http import json_response


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


def to_response(error: AppError, **meta: Any) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    return json_response(None, status_code=error.status_code, error=str(error), **meta)
