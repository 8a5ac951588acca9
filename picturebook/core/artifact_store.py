"""
Artifact store: one JSON document per artifact kind in a per-story folder.

Folder layout:
    <folder>/brief.json        Brief
    <folder>/plot.json         StoryWithPlot
    <folder>/blurb.json        legacy plot artifact (read only)
    <folder>/prose.json        StoryWithProse
    <folder>/story.json        {"kind": "draft" | "composed", ...}
    <folder>/book.json         RenderedBook
    <folder>/checkpoint.json   PipelineCheckpoint (per-page progress)
    <folder>/assets/           rendered page images

Writes go through a temp file and os.replace so an interrupted write never
leaves a truncated artifact behind. One writer per folder is assumed.
"""

import json
import logging
import os
import re
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel

from .types import ComposedStory, StoryDraft

logger = logging.getLogger(__name__)


class ArtifactKind(str, Enum):
    BRIEF = "brief"
    PLOT = "plot"
    BLURB = "blurb"  # legacy
    PROSE = "prose"
    STORY = "story"
    BOOK = "book"
    CHECKPOINT = "checkpoint"

    @property
    def filename(self) -> str:
        return f"{self.value}.json"


class StoryKind(str, Enum):
    """Discriminant written into story.json."""

    DRAFT = "draft"
    COMPOSED = "composed"


STORY_KIND_KEY = "kind"


class ArtifactStore:
    """Persists and loads story artifacts for a single story folder."""

    def __init__(self, folder: Union[str, Path]):
        self.folder = Path(folder)

    def __repr__(self) -> str:
        return f"ArtifactStore({str(self.folder)!r})"

    @property
    def assets_dir(self) -> Path:
        return self.folder / "assets"

    def path_for(self, kind: ArtifactKind) -> Path:
        return self.folder / kind.filename

    def exists(self, kind: ArtifactKind) -> bool:
        return self.path_for(kind).is_file()

    def list_artifacts(self) -> list[ArtifactKind]:
        """Artifact kinds present in the folder, in pipeline order."""
        if not self.folder.is_dir():
            return []
        return [kind for kind in ArtifactKind if self.exists(kind)]

    def save(self, kind: ArtifactKind, data: Union[BaseModel, dict[str, Any]]) -> Path:
        """Write an artifact. Models are serialized the way they appear on disk."""
        if isinstance(data, BaseModel):
            data = _to_json_dict(data)

        self.folder.mkdir(parents=True, exist_ok=True)
        path = self.path_for(kind)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)
        logger.debug(f"Saved {kind.value} artifact to {path}")
        return path

    def load(self, kind: ArtifactKind) -> Optional[dict[str, Any]]:
        """Read an artifact as raw JSON, or None if it is not there."""
        path = self.path_for(kind)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def save_story(self, story: Union[ComposedStory, StoryDraft]) -> Path:
        """Write story.json with an explicit kind discriminant."""
        story_kind = StoryKind.COMPOSED if isinstance(story, ComposedStory) else StoryKind.DRAFT
        return self.save(ArtifactKind.STORY, {STORY_KIND_KEY: story_kind.value, **_to_json_dict(story)})


def _to_json_dict(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Story folder naming
# =============================================================================

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def title_to_file_safe_name(title: str) -> str:
    """Lowercase, hyphenated, max 50 chars."""
    name = re.sub(r"[^\w\s-]", "", title.lower().strip())
    name = re.sub(r"[\s_]+", "-", name)
    name = re.sub(r"-+", "-", name).strip("-")
    return name[:50]


def story_folder_name(title: str, now: Optional[datetime] = None) -> str:
    """
    Folder name for a new story: {YYYYMMDD}-{HHmmss}-{name}-{DD-Mon-YYYY}.

    Example: "20241126-143052-the-magic-garden-26-Nov-2024"
    """
    now = now or datetime.now()
    name = title_to_file_safe_name(title) or "untitled-story"
    human_date = f"{now.day:02d}-{_MONTHS[now.month - 1]}-{now.year}"
    return f"{now:%Y%m%d-%H%M%S}-{name}-{human_date}"


def create_story_folder(title: str, output_dir: Union[str, Path], now: Optional[datetime] = None) -> Path:
    """
    Create a new, empty story folder (with assets/) under output_dir.

    The folder is claimed with an exclusive mkdir; when a story with the same
    name was started in the same second, a -2, -3... suffix is appended.
    """
    root = Path(output_dir)
    root.mkdir(parents=True, exist_ok=True)
    name = story_folder_name(title, now)
    folder = root / name
    suffix = 1
    while True:
        try:
            folder.mkdir()
            break
        except FileExistsError:
            suffix += 1
            folder = root / f"{name}-{suffix}"
    (folder / "assets").mkdir()
    return folder


def create_story_store(title: str, output_dir: Union[str, Path]) -> ArtifactStore:
    """Create the folder for a new story and return its store."""
    return ArtifactStore(create_story_folder(title, output_dir))


def find_latest_story_folder(output_dir: Union[str, Path]) -> Optional[Path]:
    """The most recently modified story folder, or None if there are none."""
    root = Path(output_dir)
    if not root.is_dir():
        return None
    folders = [entry for entry in root.iterdir() if entry.is_dir()]
    if not folders:
        return None
    return max(folders, key=lambda entry: entry.stat().st_mtime)
