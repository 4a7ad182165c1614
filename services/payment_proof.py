"""
Payment proof image handling.

Accepted uploads are PNG or JPEG screenshots up to 2 MiB. Before being
attached to an order they are downscaled so the longer side is at most
1080 px and re-encoded as JPEG at quality 70, then embedded as a
base64 data URI.
"""

import asyncio
import base64
import io
import logging

from PIL import Image, UnidentifiedImageError

from exceptions.payment_proof import (
    ProofProcessingException,
    ProofTooLargeException,
    UnsupportedProofTypeException,
)

logger = logging.getLogger(__name__)

ALLOWED_PROOF_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg"})
MAX_PROOF_SIZE_BYTES = 2 * 1024 * 1024
MAX_PROOF_DIMENSION = 1080
PROOF_JPEG_QUALITY = 70


class PaymentProofService:

    @staticmethod
    def validate(content_type: str | None, size: int):
        """
        Check type and size of an upload before it is read or decoded.

        Raises:
            UnsupportedProofTypeException: Not a PNG/JPEG upload
            ProofTooLargeException: Larger than MAX_PROOF_SIZE_BYTES
        """
        if content_type is None or content_type.lower() not in ALLOWED_PROOF_TYPES:
            raise UnsupportedProofTypeException(content_type)
        if size > MAX_PROOF_SIZE_BYTES:
            raise ProofTooLargeException(size, MAX_PROOF_SIZE_BYTES)

    @staticmethod
    async def compress(content: bytes) -> str:
        """
        Downscale and re-encode an image without blocking the event loop.

        Returns:
            data:image/jpeg;base64,... URI

        Raises:
            ProofProcessingException: If the bytes are not a decodable image
        """
        return await asyncio.to_thread(PaymentProofService._compress_sync, content)

    @staticmethod
    def _compress_sync(content: bytes) -> str:
        try:
            with Image.open(io.BytesIO(content)) as image:
                image.thumbnail((MAX_PROOF_DIMENSION, MAX_PROOF_DIMENSION))
                if image.mode != "RGB":
                    image = image.convert("RGB")
                buffer = io.BytesIO()
                image.save(buffer, format="JPEG", quality=PROOF_JPEG_QUALITY, optimize=True)
        except (UnidentifiedImageError, OSError) as e:
            raise ProofProcessingException(str(e)) from e

        compressed = buffer.getvalue()
        logger.debug(f"Payment proof compressed from {len(content)} to {len(compressed)} bytes")
        encoded = base64.b64encode(compressed).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"

    @classmethod
    async def prepare(cls, content: bytes, content_type: str | None, size: int | None = None) -> str:
        """Validate an upload and return the compressed data URI."""
        cls.validate(content_type, len(content) if size is None else size)
        return await cls.compress(content)
