"""
Payment proof upload exceptions.
"""

from .base import StorefrontException


class PaymentProofException(StorefrontException):
    """Base exception for payment proof errors."""
    pass


class UnsupportedProofTypeException(PaymentProofException):
    """Raised when the uploaded proof is not a PNG or JPEG image."""

    def __init__(self, content_type: str | None):
        super().__init__(
            "Please upload a PNG or JPEG image",
            details={'content_type': content_type}
        )
        self.content_type = content_type


class ProofTooLargeException(PaymentProofException):
    """Raised when the uploaded proof exceeds the size limit."""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"Image must be smaller than {max_size // (1024 * 1024)} MB",
            details={'size': size, 'max_size': max_size}
        )
        self.size = size
        self.max_size = max_size


class ProofProcessingException(PaymentProofException):
    """Raised when the uploaded proof cannot be decoded or re-encoded."""

    def __init__(self, reason: str):
        super().__init__(
            f"Could not process image: {reason}",
            details={'reason': reason}
        )
        self.reason = reason
