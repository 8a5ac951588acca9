"""
Process-wide settings for the Picture Book Generator.

Environment overrides are resolved once at startup by PipelineConfig.from_env()
and the resulting config is passed explicitly to the pipeline, capabilities,
CLI and worker.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .book import BOOK_CONSTANTS, get_book_format


@dataclass(frozen=True)
class PipelineConfig:
    """Explicit configuration threaded through a pipeline run."""

    model_id: Optional[str] = None  # None = provider default from config.llm
    image_model_id: Optional[str] = None  # None = IMAGE_CONSTANTS["model"]
    default_format: str = BOOK_CONSTANTS["default_format"]
    output_dir: Path = Path("output")
    json_logs: bool = False
    log_level: str = "INFO"
    redis_url: str = "redis://localhost:6379"
    max_concurrent_jobs: int = 2

    def __post_init__(self):
        # Fail at startup rather than at render time
        get_book_format(self.default_format)
        if self.max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """
        Build config from environment variables (and .env).

        Recognized variables:
            PICTUREBOOK_MODEL_ID, PICTUREBOOK_IMAGE_MODEL, PICTUREBOOK_FORMAT,
            PICTUREBOOK_OUTPUT_DIR, PICTUREBOOK_JSON_LOGS, PICTUREBOOK_LOG_LEVEL,
            REDIS_URL, PICTUREBOOK_MAX_JOBS
        """
        load_dotenv()
        return cls(
            model_id=os.getenv("PICTUREBOOK_MODEL_ID") or None,
            image_model_id=os.getenv("PICTUREBOOK_IMAGE_MODEL") or None,
            default_format=os.getenv("PICTUREBOOK_FORMAT", BOOK_CONSTANTS["default_format"]),
            output_dir=Path(os.getenv("PICTUREBOOK_OUTPUT_DIR", "output")),
            json_logs=os.getenv("PICTUREBOOK_JSON_LOGS", "").lower() in ("1", "true", "yes"),
            log_level=os.getenv("PICTUREBOOK_LOG_LEVEL", "INFO").upper(),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            max_concurrent_jobs=int(os.getenv("PICTUREBOOK_MAX_JOBS", "2")),
        )
