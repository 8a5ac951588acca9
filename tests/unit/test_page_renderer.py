"""Unit tests for PageRenderer with a mocked image client."""

import io

import pytest
from PIL import Image
from unittest.mock import MagicMock, patch

from picturebook.config import get_book_format
from picturebook.core.modules.page_renderer import PageRenderer, fit_to_format, render_placeholder_page

from tests.unit.factories import make_composed_story


def _png(size=(64, 48), color=(200, 100, 50)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


def _response_with(image_bytes: bytes):
    part = MagicMock()
    part.inline_data.data = image_bytes
    response = MagicMock()
    response.candidates = [MagicMock()]
    response.candidates[0].content.parts = [part]
    return response


@pytest.fixture
def composed():
    return make_composed_story()


class TestFitToFormat:
    """Tests for fit_to_format()."""

    def test_resizes_to_bleed_size(self):
        book_format = get_book_format("landscape")

        image = Image.open(io.BytesIO(fit_to_format(_png(), book_format)))

        assert image.size == (2775, 2175)
        assert image.format == "PNG"


class TestPlaceholderPage:
    """Tests for render_placeholder_page()."""

    def test_quarter_size_png(self, composed):
        image = Image.open(io.BytesIO(render_placeholder_page(composed, 2, get_book_format("square-small"))))
        assert image.size == (2325 // 4, 2325 // 4)

    def test_page_out_of_range(self, composed):
        with pytest.raises(ValueError):
            render_placeholder_page(composed, 9, get_book_format("square-small"))


class TestPageRenderer:
    """Tests for PageRenderer.render()."""

    def test_prompt_includes_page_context(self, composed):
        prompt = PageRenderer().build_page_prompt(composed, 3)

        assert "page 3 of 8" in prompt
        assert "Hazel takes step number 3." in prompt
        assert "Hazel: a small hedgehog with a red scarf" in prompt
        assert "watercolor" in prompt
        assert "ages 4-6" in prompt

    def test_render_calls_model_and_fits(self, composed):
        renderer = PageRenderer(model_id="gemini-test-image")
        renderer._client = MagicMock()
        renderer._client.models.generate_content.return_value = _response_with(_png())

        result = renderer.render(composed, 1, get_book_format("square-small"))

        assert Image.open(io.BytesIO(result)).size == (2325, 2325)
        kwargs = renderer._client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test-image"
        assert kwargs["config"].image_config.aspect_ratio == "1:1"
        assert len(kwargs["contents"]) == 1

    def test_reference_image_sent_first(self, composed):
        renderer = PageRenderer()
        renderer._client = MagicMock()
        renderer._client.models.generate_content.return_value = _response_with(_png())

        renderer.render(composed, 2, get_book_format("square-small"), reference_image=_png())

        contents = renderer._client.models.generate_content.call_args.kwargs["contents"]
        assert isinstance(contents[0], Image.Image)
        assert "page 1 of the same book" in contents[1]
        assert "page 2 of 8" in contents[2]

    def test_no_image_in_response(self, composed):
        renderer = PageRenderer()
        response = MagicMock()
        response.candidates = [MagicMock()]
        response.candidates[0].content.parts = []
        renderer._client = MagicMock()
        renderer._client.models.generate_content.return_value = response

        with pytest.raises(ValueError, match="No image generated for page 4"):
            renderer.render(composed, 4, get_book_format("square-small"))

    def test_client_created_lazily(self):
        with patch("picturebook.core.modules.page_renderer.get_image_client") as mock_client:
            renderer = PageRenderer()
            mock_client.assert_not_called()

            assert renderer.client is mock_client.return_value
            assert renderer.client is mock_client.return_value
            mock_client.assert_called_once()
