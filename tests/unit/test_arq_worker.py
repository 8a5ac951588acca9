"""Unit tests for ARQ worker and book generation tasks."""

from pathlib import Path

import pytest
from unittest.mock import AsyncMock, MagicMock

from picturebook.config import PipelineConfig
from picturebook.core.programs import PipelineResult
from picturebook.core.types import Stage

from tests.unit.factories import make_story


def _ctx(result=None, error=None):
    pipeline = MagicMock()
    pipeline.create = AsyncMock(return_value=result, side_effect=error)
    pipeline.resume = AsyncMock(return_value=result, side_effect=error)
    return {"job_id": "test-job-123", "pipeline": pipeline, "config": PipelineConfig(output_dir=Path("books"))}


class TestGenerateBookTask:
    """Tests for the generate_book_task ARQ task."""

    @pytest.mark.asyncio
    async def test_task_runs_pipeline_with_options(self):
        """Task should pass format, stop stage and output dir to the pipeline."""
        from picturebook.worker import generate_book_task

        result = PipelineResult(story=make_story(), folder=Path("books/hedgehog"))
        ctx = _ctx(result)

        summary = await generate_book_task(ctx, "a shy hedgehog", book_format="landscape", stop_after="plot")

        description, options = ctx["pipeline"].create.call_args.args
        assert description == "a shy hedgehog"
        assert options.format == "landscape"
        assert options.stop_after is Stage.PLOT
        assert options.output_dir == Path("books")
        assert summary == {
            "folder": str(Path("books/hedgehog")),
            "title": "The Brave Little Hedgehog",
            "status": "stopped",
            "pages": 0,
        }

    @pytest.mark.asyncio
    async def test_task_reraises_exceptions(self):
        """Task should re-raise exceptions so ARQ marks job as failed."""
        from picturebook.worker import generate_book_task

        ctx = _ctx(error=ValueError("Generation failed"))
        with pytest.raises(ValueError, match="Generation failed"):
            await generate_book_task(ctx, "a shy hedgehog")

    @pytest.mark.asyncio
    async def test_task_handles_missing_job_id_in_context(self):
        from picturebook.worker import generate_book_task

        ctx = _ctx(PipelineResult(story=make_story()))
        del ctx["job_id"]

        summary = await generate_book_task(ctx, "a shy hedgehog")
        assert summary["folder"] is None


class TestResumeBookTask:
    """Tests for the resume_book_task ARQ task."""

    @pytest.mark.asyncio
    async def test_resumes_folder(self):
        from picturebook.worker import resume_book_task

        ctx = _ctx(PipelineResult(story=make_story(), folder=Path("books/hedgehog")))

        await resume_book_task(ctx, "books/hedgehog")

        assert ctx["pipeline"].resume.call_args.args[0] == Path("books/hedgehog")


class TestWorkerSettings:
    """Tests for ARQ WorkerSettings configuration."""

    def test_worker_settings_registers_tasks(self):
        from picturebook.worker import WorkerSettings, generate_book_task, resume_book_task

        assert generate_book_task in WorkerSettings.functions
        assert resume_book_task in WorkerSettings.functions

    def test_worker_settings_has_lifecycle_hooks(self):
        from picturebook.worker import WorkerSettings

        assert WorkerSettings.on_startup is not None
        assert WorkerSettings.on_shutdown is not None

    def test_worker_settings_has_reasonable_timeout(self):
        """A full book renders every page, so jobs need a long timeout."""
        from picturebook.worker import WorkerSettings

        assert WorkerSettings.job_timeout >= 1800

    def test_failed_books_are_not_retried(self):
        """A failed job is resumed from its folder, never rerun from scratch."""
        from picturebook.worker import WorkerSettings

        assert WorkerSettings.max_tries == 1


class TestCleanupStaleRedisKeys:
    """Tests for _cleanup_stale_redis_keys function."""

    @pytest.mark.asyncio
    async def test_cleanup_deletes_in_progress_keys(self):
        from picturebook.worker import _cleanup_stale_redis_keys

        mock_redis = AsyncMock()
        mock_redis.keys = AsyncMock(return_value=[b"arq:in-progress:job123", b"arq:in-progress:job456"])
        mock_redis.delete = AsyncMock()

        await _cleanup_stale_redis_keys({"redis": mock_redis})

        mock_redis.keys.assert_called_once_with("arq:in-progress:*")
        assert mock_redis.delete.call_count == 2

    @pytest.mark.asyncio
    async def test_cleanup_handles_missing_redis_context(self):
        from picturebook.worker import _cleanup_stale_redis_keys

        await _cleanup_stale_redis_keys({})

    @pytest.mark.asyncio
    async def test_cleanup_handles_redis_errors(self):
        """Cleanup should log Redis errors and let the worker start."""
        from picturebook.worker import _cleanup_stale_redis_keys

        mock_redis = AsyncMock()
        mock_redis.keys = AsyncMock(side_effect=Exception("Redis connection lost"))

        await _cleanup_stale_redis_keys({"redis": mock_redis})
