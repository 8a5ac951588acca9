"""Unit tests for image extraction from Gemini API responses."""

import base64

import pytest
from unittest.mock import MagicMock

from picturebook.config.image import extract_image_from_response, get_image_config, get_image_model


class FakePart:
    """Fake Gemini response part."""
    def __init__(self, image_data=None):
        if image_data is not None:
            self.inline_data = MagicMock()
            self.inline_data.data = image_data
        else:
            self.inline_data = None


class FakeCandidate:
    """Fake Gemini response candidate."""
    def __init__(self, parts):
        self.content = MagicMock()
        self.content.parts = parts


class FakeResponse:
    """Fake Gemini API response."""
    def __init__(self, parts):
        self.candidates = [FakeCandidate(parts)]


class TestExtractImageFromResponse:
    """Tests for extract_image_from_response()."""

    def test_extracts_raw_bytes(self):
        """Returns bytes directly when response contains raw bytes."""
        image_bytes = b"\x89PNG\r\n\x1a\n fake page"
        response = FakeResponse([FakePart(image_bytes)])

        assert extract_image_from_response(response) == image_bytes

    def test_decodes_base64_string(self):
        """Decodes base64 string when response contains encoded data."""
        original_bytes = b"\x89PNG\r\n\x1a\n fake page"
        encoded = base64.b64encode(original_bytes).decode("utf-8")

        assert extract_image_from_response(FakeResponse([FakePart(encoded)])) == original_bytes

    def test_skips_text_parts(self):
        """The model may send commentary before the image."""
        response = FakeResponse([FakePart(None), FakePart(b"page image")])

        assert extract_image_from_response(response) == b"page image"

    def test_raises_when_no_image_in_response(self):
        with pytest.raises(ValueError, match="No image found"):
            extract_image_from_response(FakeResponse([FakePart(None)]))

    def test_raises_when_parts_list_empty(self):
        with pytest.raises(ValueError, match="No image found"):
            extract_image_from_response(FakeResponse([]))


class TestImageConfig:
    """Tests for model and request config helpers."""

    def test_model_override(self):
        assert get_image_model("gemini-test-image") == "gemini-test-image"
        assert get_image_model() == "gemini-3-pro-image-preview"

    def test_aspect_ratio_in_config(self):
        config = get_image_config("3:4")
        assert config.image_config.aspect_ratio == "3:4"
