"""Custom exception classes for API error handling."""

from __future__ import annotations


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int = 400, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail or message


class ValidationError(APIError):
    """Raised when request validation fails."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message, status_code=400, detail=detail)


class AuthenticationError(APIError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed", detail: str | None = None):
        super().__init__(message, status_code=401, detail=detail)


class PermissionDeniedError(APIError):
    """Raised when an authenticated caller lacks the required role."""

    def __init__(self, message: str = "Forbidden - Admin access required", detail: str | None = None):
        super().__init__(message, status_code=403, detail=detail)


class NotFoundError(APIError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class ServiceUnavailableError(APIError):
    def __init__(self, message: str = "Service not configured"):
        super().__init__(message, status_code=503)
