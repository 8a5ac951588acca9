"""
Configuration module for the Picture Book Generator.

Re-exports all configuration for convenient access.
"""

from .book import BOOK_CONSTANTS, BOOK_FORMATS, BookFormat, get_aspect_ratio, get_book_format
from .llm import get_inference_lm, get_inference_model_name, rate_limit_retry
from .image import (
    IMAGE_CONSTANTS,
    get_image_client,
    get_image_model,
    get_image_config,
    extract_image_from_response,
)
from .settings import PipelineConfig
from .logging import configure_logging, attach_story_log, detach_story_log, book_logger

__all__ = [
    # Book
    "BOOK_CONSTANTS",
    "BOOK_FORMATS",
    "BookFormat",
    "get_aspect_ratio",
    "get_book_format",
    # LLM
    "get_inference_lm",
    "get_inference_model_name",
    "rate_limit_retry",
    # Image
    "IMAGE_CONSTANTS",
    "get_image_client",
    "get_image_model",
    "get_image_config",
    "extract_image_from_response",
    # Settings
    "PipelineConfig",
    # Logging
    "configure_logging",
    "attach_story_log",
    "detach_story_log",
    "book_logger",
]
