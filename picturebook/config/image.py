"""
Image generation configuration for the Picture Book Generator.

Uses Nano Banana Pro (Gemini 3 Pro Image) for page rendering.
"""

import base64
import os
from typing import Optional

from dotenv import load_dotenv
from google import genai
from google.genai.types import GenerateContentConfig, ImageConfig, Modality

# Load environment variables from .env file
load_dotenv()

# Image generation constants
IMAGE_CONSTANTS = {
    "model": "gemini-3-pro-image-preview",  # Nano Banana Pro
    "max_reference_images": 14,
}


def get_image_client() -> genai.Client:
    """
    Get the Gemini image client for page rendering.

    Uses GOOGLE_API_KEY from environment.
    """
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY not found in environment. Set it in .env file.")

    return genai.Client(api_key=api_key)


def get_image_model(model_id: Optional[str] = None) -> str:
    """Get the image model ID, honoring an explicit override."""
    return model_id or IMAGE_CONSTANTS["model"]


def get_image_config(aspect_ratio: str = "1:1") -> GenerateContentConfig:
    """Get the config for image generation at the given aspect ratio."""
    return GenerateContentConfig(
        response_modalities=[Modality.TEXT, Modality.IMAGE],
        image_config=ImageConfig(aspect_ratio=aspect_ratio),
    )


def extract_image_from_response(response) -> bytes:
    """
    Extract image bytes from a Gemini API response.

    Raises:
        ValueError: If no image found in response
    """
    for part in response.candidates[0].content.parts:
        if hasattr(part, "inline_data") and part.inline_data:
            data = part.inline_data.data
            return base64.b64decode(data) if isinstance(data, str) else data

    raise ValueError("No image found in response")
