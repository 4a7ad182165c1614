"""
Redis storage exceptions.
"""

from .base import StorefrontException


class StorageException(StorefrontException):
    """Base exception for local storage errors."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Storage operation on '{key}' failed: {reason}",
            details={'key': key, 'reason': reason}
        )
        self.key = key
        self.reason = reason


class CartPersistenceException(StorageException):
    """Raised when the cart mirror cannot be written or removed."""
    pass
