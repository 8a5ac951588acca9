"""
Typed progress events for the book pipeline.

The pipeline emits a closed set of event kinds through a ProgressEmitter.
Consumers (CLI output, logging, the progress tracker) subscribe without
depending on pipeline internals.
"""

import json
import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ProgressStatus(str, Enum):
    START = "start"
    COMPLETE = "complete"
    ERROR = "error"


class StepKind(str, Enum):
    """Every step the pipeline reports on."""

    PLOT = "plot"
    SETUP = "setup"
    STYLE_GUIDE = "style-guide"
    PROSE_SETUP = "prose-setup"
    PROSE = "prose"
    PROSE_PAGE = "prose-page"
    VISUALS = "visuals"
    VISUALS_PAGE = "visuals-page"
    RENDER = "render"
    RENDER_PAGE = "render-page"
    COMPLETE = "complete"

    @property
    def is_page_step(self) -> bool:
        return self in (StepKind.PROSE_PAGE, StepKind.VISUALS_PAGE, StepKind.RENDER_PAGE)


@dataclass(frozen=True)
class ProgressEvent:
    kind: StepKind
    status: ProgressStatus
    page_number: Optional[int] = None
    payload: Any = None

    def __post_init__(self):
        if self.kind.is_page_step and self.page_number is None:
            raise ValueError(f"{self.kind.value} events need a page_number")
        if not self.kind.is_page_step and self.page_number is not None:
            raise ValueError(f"{self.kind.value} events do not take a page_number")

    @property
    def step_name(self) -> str:
        """Wire name, e.g. 'prose-page-3' or 'setup'."""
        if self.page_number is not None:
            return f"{self.kind.value}-{self.page_number}"
        return self.kind.value


ProgressListener = Callable[[ProgressEvent], None]


class ProgressEmitter:
    """
    Fan-out of progress events to subscribers.

    A failing listener is logged and skipped: progress reporting must never
    abort a generation run.
    """

    def __init__(self, listeners: Optional[list[ProgressListener]] = None):
        self._listeners: list[ProgressListener] = list(listeners or [])

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Add a listener. Returns a function that removes it again."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def emit(
        self,
        kind: StepKind,
        status: ProgressStatus,
        page_number: Optional[int] = None,
        payload: Any = None,
    ) -> ProgressEvent:
        event = ProgressEvent(kind, status, page_number, payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Progress listener failed on {event.step_name}: {e}")
        return event


def log_progress(event: ProgressEvent) -> None:
    """Listener that mirrors progress into the application log."""
    level = logging.WARNING if event.status is ProgressStatus.ERROR else logging.INFO
    logger.log(
        level,
        f"{event.step_name}: {event.status.value}",
        extra={"stage": event.kind.value, "page_number": event.page_number, "status": event.status.value},
    )


def print_progress(event: ProgressEvent) -> None:
    """Listener that prints one line per event to stderr, for the CLI."""
    marker = {ProgressStatus.START: "...", ProgressStatus.COMPLETE: "ok", ProgressStatus.ERROR: "FAILED"}
    print(f"  {event.step_name}: {marker[event.status]}", file=sys.stderr)


# Stage weight mapping for percentage calculation
STAGE_WEIGHTS = {
    StepKind.PLOT: (0, 5),
    StepKind.SETUP: (5, 10),
    StepKind.PROSE: (10, 30),
    StepKind.VISUALS: (30, 50),
    StepKind.RENDER: (50, 100),
}

_PAGE_STAGE = {
    StepKind.PROSE_PAGE: StepKind.PROSE,
    StepKind.VISUALS_PAGE: StepKind.VISUALS,
    StepKind.RENDER_PAGE: StepKind.RENDER,
}


class ProgressTracker:
    """
    Tracks weighted completion percentage and writes it to progress.json.

    Includes debouncing to limit disk writes; stage changes, completions and
    errors are always written.
    """

    def __init__(self, folder: Path, page_count: int, min_update_interval: float = 0.5):
        self.path = Path(folder) / "progress.json"
        self.page_count = page_count
        self.min_update_interval = min_update_interval

        self.last_update_time: Optional[float] = None
        self.last_step: Optional[str] = None
        self.percentage = 0

    def __call__(self, event: ProgressEvent) -> None:
        self.percentage = max(self.percentage, self._calculate_percentage(event))

        now = time.time()
        must_write = (
            event.status is not ProgressStatus.START
            or event.step_name != self.last_step
            or self.last_update_time is None
        )
        if not must_write and now - self.last_update_time < self.min_update_interval:
            return

        self._write_progress(event)
        self.last_update_time = now
        self.last_step = event.step_name

    def _calculate_percentage(self, event: ProgressEvent) -> int:
        if event.kind is StepKind.COMPLETE:
            return 100 if event.status is ProgressStatus.COMPLETE else self.percentage

        stage = _PAGE_STAGE.get(event.kind, event.kind)
        if stage not in STAGE_WEIGHTS:
            return self.percentage

        start_pct, end_pct = STAGE_WEIGHTS[stage]
        if event.page_number is not None and self.page_count > 0:
            done = event.page_number if event.status is ProgressStatus.COMPLETE else event.page_number - 1
            return int(start_pct + (end_pct - start_pct) * done / self.page_count)
        if event.status is ProgressStatus.COMPLETE:
            return end_pct
        return start_pct

    def _write_progress(self, event: ProgressEvent) -> None:
        progress_data = {
            "step": event.step_name,
            "status": event.status.value,
            "percentage": self.percentage,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.path.write_text(json.dumps(progress_data, indent=2), encoding="utf-8")
        except OSError as e:
            # Progress updates are non-critical
            logger.warning(f"Failed to write progress to {self.path}: {e}")
