"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, Optional


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


class UnauthorizedError(AppError):
    """Raised when the gateway token is missing or wrong."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class PersistenceError(AppError):
    """Raised when the ticket database rejects or fails a write."""

    def __init__(self, message: str = "Ticket storage unavailable"):
        super().__init__(message, status_code=502)


class DeliveryError(AppError):
    """Raised by a chat transport when the gateway refuses a message."""

    def __init__(self, message: str = "Message delivery failed"):
        super().__init__(message, status_code=502)


def json_response(status: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False, default=str),
    }


def to_response(error: AppError, correlation_id: Optional[str] = None) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    body: Dict[str, Any] = {"message": str(error), "status": "error"}
    if correlation_id:
        body["correlation_id"] = correlation_id
    return json_response(error.status_code, body)
