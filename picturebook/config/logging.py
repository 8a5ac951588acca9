"""Structured logging for the Picture Book Generator.

Provides JSON-formatted logging for production and human-readable logging
for development, a per-story NDJSON run log, and a BookLogger helper for
pipeline events.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Structured fields copied from LogRecord extras into JSON output
_EXTRA_FIELDS = (
    "story",
    "stage",
    "page_number",
    "status",
    "duration",
    "attempt",
    "error_type",
    "failed_at_stage",
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(json_format: bool = True, level: int | str = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


# Story folder of the run in the current task (asyncio tasks and to_thread copy it)
_active_story: ContextVar[Optional[str]] = ContextVar("picturebook_active_story", default=None)


class _StoryRunFilter(logging.Filter):
    """Passes only records emitted from inside one story's run."""

    def __init__(self, key: str):
        super().__init__()
        self.key = key

    def filter(self, record: logging.LogRecord) -> bool:
        return _active_story.get() == self.key


def attach_story_log(folder: Path, level: int = logging.DEBUG) -> logging.Handler:
    """
    Write NDJSON logs for one story run to <folder>/run.log.

    Only records logged from the calling task (and threads it starts) are
    written, so concurrent runs keep separate logs. Returns the handler so the
    caller can detach it with detach_story_log() from the same task.
    """
    folder.mkdir(parents=True, exist_ok=True)
    key = str(folder.resolve())
    handler = logging.FileHandler(folder / "run.log", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(_StoryRunFilter(key))
    handler.context_token = _active_story.set(key)
    logging.getLogger("picturebook").addHandler(handler)
    return handler


def detach_story_log(handler: logging.Handler) -> None:
    logging.getLogger("picturebook").removeHandler(handler)
    token = getattr(handler, "context_token", None)
    if token is not None:
        _active_story.reset(token)
    handler.close()


class BookLogger:
    """Logger for book generation events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("picturebook.generation")

    def generation_started(self, story: str, entry_stage: str) -> None:
        self.logger.info(
            "Book generation started",
            extra={"story": story, "stage": entry_stage},
        )

    def stage_completed(self, story: str, stage: str, duration: Optional[float] = None) -> None:
        extra = {"story": story, "stage": stage}
        if duration:
            extra["duration"] = round(duration, 2)
        self.logger.info(f"Stage completed: {stage}", extra=extra)

    def page_completed(self, story: str, stage: str, page_number: int) -> None:
        self.logger.debug(
            f"Page {page_number} completed: {stage}",
            extra={"story": story, "stage": stage, "page_number": page_number},
        )

    def generation_completed(self, story: str, duration: float) -> None:
        self.logger.info(
            "Book generation completed",
            extra={"story": story, "stage": "complete", "duration": round(duration, 2)},
        )

    def generation_failed(
        self,
        story: str,
        error: BaseException,
        stage: Optional[str] = None,
        page_number: Optional[int] = None,
    ) -> None:
        extra = {"story": story, "stage": "failed", "error_type": type(error).__name__}
        if stage:
            extra["failed_at_stage"] = stage
        if page_number is not None:
            extra["page_number"] = page_number
        self.logger.error(f"Book generation failed: {error}", extra=extra, exc_info=error)

    def repair_attempt(self, target: str, reason: str) -> None:
        self.logger.warning(
            f"Repairing malformed {target} output: {reason}",
            extra={"stage": target, "attempt": 1},
        )


# Global book logger instance
book_logger = BookLogger()
