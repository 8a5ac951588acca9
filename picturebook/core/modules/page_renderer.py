"""
Module for rendering page illustrations using Nano Banana Pro.

Each page is rendered from its prose and illustration beats plus the book's
style guide. After the first page, that page is passed back as a visual
reference so later pages keep the same look. Output is fitted to the print
format's bleed size.
"""

import io
import json
from typing import Optional

from PIL import Image, ImageDraw, ImageOps

from picturebook.config import (
    IMAGE_CONSTANTS,
    BookFormat,
    extract_image_from_response,
    get_aspect_ratio,
    get_image_client,
    get_image_config,
    get_image_model,
)
from ..types import ComposedStory


def fit_to_format(image_bytes: bytes, book_format: BookFormat) -> bytes:
    """Crop and scale an image to the format's bleed size, returned as PNG."""
    image = Image.open(io.BytesIO(image_bytes))
    image = ImageOps.fit(image.convert("RGB"), book_format.bleed_size, method=Image.Resampling.LANCZOS)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_placeholder_page(story: ComposedStory, page_number: int, book_format: BookFormat) -> bytes:
    """
    A plain placeholder page for mock runs.

    Draws the page number and text onto a blank page of the right size
    without calling the image model.
    """
    # Quarter size keeps mock runs fast; the file is only a stand-in
    width, height = book_format.bleed_width // 4, book_format.bleed_height // 4
    image = Image.new("RGB", (width, height), color=(245, 240, 230))
    draw = ImageDraw.Draw(image)
    prose_page, _ = story.page_context(page_number)
    draw.rectangle([8, 8, width - 9, height - 9], outline=(120, 110, 100), width=3)
    draw.text((24, 24), f"{story.title} - page {page_number}", fill=(60, 50, 40))
    draw.text((24, 56), prose_page.text[:200], fill=(60, 50, 40))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class PageRenderer:
    """
    Generate page illustrations using Nano Banana Pro.

    The client is created on first use so mock runs never need an API key.
    """

    def __init__(self, model_id: Optional[str] = None):
        self.model = get_image_model(model_id)
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = get_image_client()
        return self._client

    def build_page_prompt(self, story: ComposedStory, page_number: int) -> str:
        """Build the text prompt for one page."""
        prose_page, illustrated_page = story.page_context(page_number)
        style = story.visuals.style.model_dump(mode="json", exclude_none=True)
        beats = [beat.model_dump(mode="json", exclude_none=True) for beat in illustrated_page.beats]
        characters = "\n".join(
            f"- {c.name}: {c.visual_description or c.description}" for c in story.characters
        )

        return f"""Generate a children's picture book illustration for page {page_number} of {story.page_count} of "{story.title}".

STORY TEXT FOR THIS PAGE:
"{prose_page.text}"

IMAGE CONCEPT:
{prose_page.image_concept}

ILLUSTRATION BEATS:
{json.dumps(beats, indent=2)}

CHARACTERS:
{characters}

STYLE GUIDE:
{json.dumps(style, indent=2)}

REQUIREMENTS:
- Single cohesive full-bleed illustration for a picture book page
- Leave space for text (typically top or bottom 20% of image)
- Characters should be expressive and appealing to children
- Age-appropriate content for ages {story.age_range}
- No text or words in the image"""

    def _build_contents(self, prompt: str, reference_image: Optional[bytes]) -> list:
        """Build multimodal contents: the reference page first, then the prompt."""
        contents = []
        if reference_image and IMAGE_CONSTANTS["max_reference_images"] > 0:
            contents.append(Image.open(io.BytesIO(reference_image)))
            contents.append(
                "This is page 1 of the same book. Match its art style, palette and "
                "character designs exactly."
            )
        contents.append(prompt)
        return contents

    def render(
        self,
        story: ComposedStory,
        page_number: int,
        book_format: BookFormat,
        reference_image: Optional[bytes] = None,
    ) -> bytes:
        """
        Render one page.

        Args:
            story: The composed story
            page_number: Page to render (1-based)
            book_format: Print format the image is fitted to
            reference_image: Image bytes of the first rendered page, if any

        Returns:
            PNG bytes at the format's bleed size
        """
        contents = self._build_contents(self.build_page_prompt(story, page_number), reference_image)
        response = self.client.models.generate_content(
            model=self.model,
            contents=contents,
            config=get_image_config(get_aspect_ratio(book_format)),
        )
        try:
            image_bytes = extract_image_from_response(response)
        except ValueError:
            raise ValueError(f"No image generated for page {page_number}")
        return fit_to_format(image_bytes, book_format)
