"""
ARQ worker for background book generation.

Run with: arq picturebook.worker.WorkerSettings
"""

import logging
from pathlib import Path
from typing import Any, Optional

from arq.connections import RedisSettings
from dotenv import load_dotenv

# Load environment variables before importing app modules
load_dotenv()

from picturebook.config import PipelineConfig, configure_logging
from picturebook.core.capabilities import DspyCapabilities
from picturebook.core.events import log_progress
from picturebook.core.programs import BookPipeline, PipelineOptions, PipelineResult
from picturebook.core.types import Stage

logger = logging.getLogger(__name__)

_config = PipelineConfig.from_env()


def _summary(result: PipelineResult) -> dict[str, Any]:
    return {
        "folder": str(result.folder) if result.folder else None,
        "title": result.story.title,
        "status": "completed" if result.is_complete else "stopped",
        "pages": len(result.book.pages) if result.book else 0,
    }


async def generate_book_task(
    ctx: dict[str, Any],
    description: str,
    book_format: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> dict[str, Any]:
    """
    ARQ task for generating a book from a free-text description.

    Args:
        ctx: ARQ context (job_id, redis connection, and the pipeline from startup)
        description: What the book should be about
        book_format: Print format key (default from config)
        stop_after: Optional stage name ("plot", "prose", "visuals") to stop after

    Returns:
        Dict with the story folder and status
    """
    job_id = ctx.get("job_id", "unknown")
    pipeline: BookPipeline = ctx["pipeline"]
    config: PipelineConfig = ctx["config"]
    logger.info(f"Starting book generation job {job_id}")

    options = PipelineOptions(
        stop_after=Stage(stop_after) if stop_after else None,
        output_dir=config.output_dir,
        format=book_format,
        listeners=[log_progress],
    )
    try:
        result = await pipeline.create(description, options)
    except Exception as e:
        logger.error(f"Failed book generation job {job_id}: {e}")
        # Re-raise so ARQ marks the job as failed
        raise

    logger.info(f"Completed book generation job {job_id}: {result.folder}")
    return _summary(result)


async def resume_book_task(ctx: dict[str, Any], folder: str) -> dict[str, Any]:
    """
    ARQ task for resuming a story folder from its last completed stage.

    Enqueue with _job_id=folder so a folder never has two writers.
    """
    job_id = ctx.get("job_id", "unknown")
    pipeline: BookPipeline = ctx["pipeline"]
    logger.info(f"Starting resume job {job_id} for {folder}")

    try:
        result = await pipeline.resume(Path(folder), PipelineOptions(listeners=[log_progress]))
    except Exception as e:
        logger.error(f"Failed resume job {job_id} for {folder}: {e}")
        raise

    logger.info(f"Completed resume job {job_id} for {folder}")
    return _summary(result)


async def startup(ctx: dict[str, Any]) -> None:
    """Called when worker starts up."""
    configure_logging(json_format=_config.json_logs, level=_config.log_level)
    logger.info("ARQ worker starting up")

    ctx["config"] = _config
    ctx["pipeline"] = BookPipeline(DspyCapabilities(_config), _config)

    await _cleanup_stale_redis_keys(ctx)


async def _cleanup_stale_redis_keys(ctx: dict[str, Any]) -> None:
    """Clean up stale in-progress keys from crashed workers.

    On worker startup, clears arq:in-progress:* keys so jobs that were running
    when the previous worker crashed can be picked up again. A resumed job
    continues from the story folder's checkpoint.
    """
    redis = ctx.get("redis")
    if not redis:
        logger.warning("Redis connection not available in context, skipping Redis cleanup")
        return

    try:
        cleaned = 0
        for key in await redis.keys("arq:in-progress:*"):
            await redis.delete(key)
            cleaned += 1
            logger.debug(f"Deleted stale in-progress key: {key}")

        if cleaned > 0:
            logger.info(f"Startup Redis cleanup: removed {cleaned} stale in-progress key(s)")

    except Exception as e:
        logger.error(f"Failed Redis cleanup: {e}")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Called when worker shuts down."""
    logger.info("ARQ worker shutting down")


class WorkerSettings:
    """ARQ worker configuration."""

    # Task functions to register
    functions = [generate_book_task, resume_book_task]

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Redis connection settings
    redis_settings = RedisSettings.from_dsn(_config.redis_url)

    # Job settings
    max_jobs = _config.max_concurrent_jobs  # books are slow and API-bound
    job_timeout = 3600  # 1 hour max per book
    max_tries = 1  # a failed book is resumed explicitly, never regenerated from scratch
