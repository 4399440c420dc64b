"""Unit tests for avatar and logo image processing."""

from io import BytesIO
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from PIL import Image

from arena.services.s3 import crop_to_ratio, delete_file, process_image, upload_image


def _png(width: int, height: int, mode: str = "RGBA") -> bytes:
    buffer = BytesIO()
    Image.new(mode, (width, height)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestCropping:
    def test_wide_image_is_cropped_horizontally(self):
        cropped = crop_to_ratio(Image.new("RGB", (800, 400)), 400, 400)
        assert cropped.size == (400, 400)

    def test_tall_image_is_cropped_vertically(self):
        cropped = crop_to_ratio(Image.new("RGB", (300, 900)), 256, 256)
        assert cropped.size == (300, 300)

    def test_matching_ratio_is_untouched(self):
        image = Image.new("RGB", (500, 500))
        assert crop_to_ratio(image, 400, 400) is image


class TestProcessing:
    def test_output_is_resized_rgb_jpeg(self):
        output = process_image(_png(1200, 600), 400, 400)
        image = Image.open(output)
        assert image.format == "JPEG"
        assert image.mode == "RGB"
        assert image.size == (400, 400)


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_failure_is_a_server_error(self):
        with pytest.raises(HTTPException) as exc:
            await upload_image(b"not an image", folder="avatars", identifier="1")
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self):
        with patch("arena.services.s3.s3_client") as client:
            url = await upload_image(_png(10, 10), folder="avatars", identifier="7")
        assert "/avatars/7-" in url
        assert url.endswith(".jpg")
        client.upload_fileobj.assert_called_once()

    def test_delete_failure_returns_false(self):
        with patch("arena.services.s3.s3_client") as client:
            client.delete_object.side_effect = RuntimeError("boom")
            assert delete_file("avatars/1.jpg") is False
