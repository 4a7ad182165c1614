"""
Unit Tests: PaymentProofService

Tests for services/payment_proof.py covering upload validation and
image compression. Images are generated with Pillow.
"""

import base64
import io

import pytest
from PIL import Image

from exceptions.payment_proof import (
    ProofProcessingException,
    ProofTooLargeException,
    UnsupportedProofTypeException,
)
from services.payment_proof import MAX_PROOF_DIMENSION, MAX_PROOF_SIZE_BYTES, PaymentProofService


def make_image(fmt: str, size: tuple[int, int], mode: str = "RGB") -> bytes:
    buffer = io.BytesIO()
    color = (10, 200, 90, 128) if mode == "RGBA" else (10, 200, 90)
    Image.new(mode, size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


def decode_artifact(artifact: str) -> Image.Image:
    header, encoded = artifact.split(",", 1)
    assert header == "data:image/jpeg;base64"
    return Image.open(io.BytesIO(base64.b64decode(encoded)))


class TestValidate:

    @pytest.mark.parametrize("content_type", ["image/png", "image/jpeg", "image/jpg", "IMAGE/PNG"])
    def test_accepted_types(self, content_type):
        PaymentProofService.validate(content_type, 1024)

    @pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", "image/webp", None])
    def test_rejected_types(self, content_type):
        with pytest.raises(UnsupportedProofTypeException) as exc_info:
            PaymentProofService.validate(content_type, 1024)

        assert exc_info.value.message == "Please upload a PNG or JPEG image"

    def test_size_limit_is_inclusive(self):
        PaymentProofService.validate("image/png", MAX_PROOF_SIZE_BYTES)

        with pytest.raises(ProofTooLargeException) as exc_info:
            PaymentProofService.validate("image/png", MAX_PROOF_SIZE_BYTES + 1)

        assert exc_info.value.message == "Image must be smaller than 2 MB"

    def test_type_is_checked_before_size(self):
        with pytest.raises(UnsupportedProofTypeException):
            PaymentProofService.validate("image/gif", 3 * 1024 * 1024)


class TestCompress:

    @pytest.mark.asyncio
    async def test_large_image_is_downscaled_keeping_aspect_ratio(self):
        artifact = await PaymentProofService.compress(make_image("PNG", (2160, 1080)))

        image = decode_artifact(artifact)
        assert image.format == "JPEG"
        assert image.size == (MAX_PROOF_DIMENSION, 540)

    @pytest.mark.asyncio
    async def test_small_image_is_not_upscaled(self):
        artifact = await PaymentProofService.compress(make_image("JPEG", (320, 240)))

        assert decode_artifact(artifact).size == (320, 240)

    @pytest.mark.asyncio
    async def test_transparent_png_is_flattened_to_jpeg(self):
        artifact = await PaymentProofService.compress(make_image("PNG", (100, 100), mode="RGBA"))

        assert decode_artifact(artifact).mode == "RGB"

    @pytest.mark.asyncio
    async def test_undecodable_bytes_are_rejected(self):
        with pytest.raises(ProofProcessingException):
            await PaymentProofService.compress(b"definitely not an image")


class TestPrepare:

    @pytest.mark.asyncio
    async def test_prepare_uses_content_length_when_size_unknown(self):
        oversized = b"\xff\xd8\xff" + b"\x00" * MAX_PROOF_SIZE_BYTES

        with pytest.raises(ProofTooLargeException):
            await PaymentProofService.prepare(oversized, "image/jpeg")

    @pytest.mark.asyncio
    async def test_prepare_returns_data_uri(self):
        artifact = await PaymentProofService.prepare(make_image("PNG", (50, 50)), "image/png")

        assert artifact.startswith("data:image/jpeg;base64,")
