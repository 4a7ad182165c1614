"""
Storefront API exceptions.
"""

from .base import StorefrontException


class ApiException(StorefrontException):
    """Base exception for storefront API errors."""
    pass


class ApiRequestException(ApiException):
    """
    Raised when an API request fails.

    The message is taken verbatim from the server response when available,
    so it can be shown to the user as-is.
    """

    def __init__(self, message: str, status: int | None = None, path: str | None = None):
        super().__init__(message, details={'status': status, 'path': path})
        self.status = status
        self.path = path


class OrderSubmissionException(ApiException):
    """Raised when the order-creation request fails."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message, details={'status': status})
        self.status = status
