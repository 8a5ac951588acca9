"""
Resume detection: read a story folder back into pipeline state.

detect_stage() finds the furthest completed stage from the artifacts on disk.
load_pipeline_state() rebuilds as much of the composed record as those
artifacts allow, plus any per-page progress in checkpoint.json, so the
pipeline can pick up without redoing finished stages or pages.

Stage precedence, most advanced first:
    book.json                     -> BOOK (complete)
    story.json, composed          -> VISUALS (resume at rendering)
    prose.json                    -> PROSE (resume at visual direction)
    plot.json / legacy blurb.json -> PLOT (resume at prose)
    story.json, draft             -> PLOT if it carries a plot, else BRIEF
    brief.json                    -> BRIEF (resume at plot generation)
"""

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .artifact_store import STORY_KIND_KEY, ArtifactKind, ArtifactStore, StoryKind
from .briefs import complete_brief
from .composer import project_brief
from .errors import (
    AmbiguousArtifactError,
    ArtifactFormatError,
    IncompleteBriefError,
    NoResumableArtifactError,
)
from .types import (
    Brief,
    ComposedStory,
    PipelineCheckpoint,
    PipelineState,
    ProseSetup,
    RenderedBook,
    Stage,
    StoryDraft,
    StoryWithPlot,
    StoryWithProse,
    validate_page_sequence,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_BLURB_PLOT_KEYS = ("storyArcSummary", "plotBeats", "allowCreativeLiberty")


@dataclass(frozen=True)
class StageInfo:
    folder: Path
    stage: Stage
    latest_artifact_path: Path

    @property
    def is_complete(self) -> bool:
        return self.stage is Stage.BOOK


# =============================================================================
# Reading artifacts
# =============================================================================


def _load_raw(store: ArtifactStore, kind: ArtifactKind) -> dict[str, Any]:
    path = store.path_for(kind)
    try:
        data = store.load(kind)
    except json.JSONDecodeError as e:
        raise ArtifactFormatError(path, f"not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ArtifactFormatError(path, "expected a JSON object")
    return data


def _parse(model: type[M], data: dict[str, Any], path: Path) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ArtifactFormatError(path, str(e)) from e


def classify_story(data: dict[str, Any], path: Path) -> StoryKind:
    """
    Decide whether story.json holds a draft or a composed story.

    Current files carry an explicit "kind". Older files are classified by
    which keys they have; a file with exactly one of prose/visuals cannot be
    placed and is reported instead of guessed.
    """
    if STORY_KIND_KEY in data:
        try:
            return StoryKind(data[STORY_KIND_KEY])
        except ValueError:
            raise AmbiguousArtifactError(path, f"unknown story kind {data[STORY_KIND_KEY]!r}") from None

    has_prose = "prose" in data
    has_visuals = "visuals" in data
    if has_prose and has_visuals:
        return StoryKind.COMPOSED
    if not has_prose and not has_visuals:
        return StoryKind.DRAFT
    present = "prose" if has_prose else "visuals"
    raise AmbiguousArtifactError(path, f"legacy story has '{present}' but not both prose and visuals")


def _story_body(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if key != STORY_KIND_KEY}


def story_from_blurb(data: dict[str, Any], path: Path) -> StoryWithPlot:
    """Map a legacy blurb.json ({brief, storyArcSummary, plotBeats, ...}) to StoryWithPlot."""
    brief = data.get("brief")
    if not isinstance(brief, dict):
        raise AmbiguousArtifactError(path, "blurb has no embedded brief")
    if "plot" in brief:
        raise AmbiguousArtifactError(path, "blurb brief already carries a plot")
    plot = {key: data[key] for key in _BLURB_PLOT_KEYS if key in data}
    return _parse(StoryWithPlot, {**brief, "plot": plot}, path)


# =============================================================================
# Stage detection
# =============================================================================


def detect_stage(folder: Union[str, Path]) -> StageInfo:
    """
    Find the furthest completed stage in a story folder.

    Raises:
        NoResumableArtifactError: the folder holds no recognizable artifact
        AmbiguousArtifactError: a legacy story.json cannot be classified
    """
    folder = Path(folder)
    store = ArtifactStore(folder)
    if not folder.is_dir():
        raise NoResumableArtifactError(folder)

    def found(stage: Stage, kind: ArtifactKind) -> StageInfo:
        return StageInfo(folder, stage, store.path_for(kind))

    if store.exists(ArtifactKind.BOOK):
        return found(Stage.BOOK, ArtifactKind.BOOK)

    draft: Optional[dict[str, Any]] = None
    if store.exists(ArtifactKind.STORY):
        data = _load_raw(store, ArtifactKind.STORY)
        if classify_story(data, store.path_for(ArtifactKind.STORY)) is StoryKind.COMPOSED:
            return found(Stage.VISUALS, ArtifactKind.STORY)
        draft = data

    if store.exists(ArtifactKind.PROSE):
        return found(Stage.PROSE, ArtifactKind.PROSE)

    for kind in (ArtifactKind.PLOT, ArtifactKind.BLURB):
        if store.exists(kind):
            return found(Stage.PLOT, kind)

    if draft is not None:
        # A draft is never past plot
        return found(Stage.PLOT if draft.get("plot") else Stage.BRIEF, ArtifactKind.STORY)

    if store.exists(ArtifactKind.BRIEF):
        return found(Stage.BRIEF, ArtifactKind.BRIEF)

    raise NoResumableArtifactError(folder)


# =============================================================================
# State reconstruction
# =============================================================================


def _load_base(store: ArtifactStore, info: StageInfo) -> PipelineState:
    """State from the stage artifacts alone."""
    path = info.latest_artifact_path

    if info.stage in (Stage.BOOK, Stage.VISUALS):
        story_path = store.path_for(ArtifactKind.STORY)
        if not store.exists(ArtifactKind.STORY):
            raise ArtifactFormatError(story_path, "book.json exists but the composed story.json is missing")
        data = _load_raw(store, ArtifactKind.STORY)
        if classify_story(data, story_path) is not StoryKind.COMPOSED:
            raise ArtifactFormatError(story_path, "expected a composed story")
        story = _parse(ComposedStory, _story_body(data), story_path)
        state = PipelineState(
            brief=project_brief(story),
            plot=story.plot,
            style_guide=story.visuals.style,
            prose_setup=_prose_setup_of(story),
            prose_pages=tuple(story.prose.pages),
            illustrated_pages=tuple(story.visuals.illustrated_pages),
        )
        if info.stage is Stage.BOOK:
            book = _parse(RenderedBook, _load_raw(store, ArtifactKind.BOOK), path)
            state = _replace(state, rendered_pages=tuple(book.pages))
        return state

    if info.stage is Stage.PROSE:
        story = _parse(StoryWithProse, _load_raw(store, ArtifactKind.PROSE), path)
        return PipelineState(
            brief=project_brief(story),
            plot=story.plot,
            prose_setup=_prose_setup_of(story),
            prose_pages=tuple(story.prose.pages),
        )

    if info.stage is Stage.PLOT:
        kind = ArtifactKind(path.stem)
        data = _load_raw(store, kind)
        if kind is ArtifactKind.BLURB:
            story = story_from_blurb(data, path)
        else:
            story = _parse(StoryWithPlot, _story_body(data), path)
        return PipelineState(brief=project_brief(story), plot=story.plot)

    # Stage.BRIEF
    kind = ArtifactKind(path.stem)
    data = _load_raw(store, kind)
    if kind is ArtifactKind.STORY:
        draft = _parse(StoryDraft, _story_body(data), path)
        try:
            brief = complete_brief(draft)
        except IncompleteBriefError as e:
            raise ArtifactFormatError(path, str(e)) from e
        return PipelineState(brief=brief)
    return PipelineState(brief=_parse(Brief, data, path))


def _prose_setup_of(story: StoryWithProse) -> ProseSetup:
    return ProseSetup(
        logline=story.prose.logline,
        theme=story.prose.theme,
        style_notes=story.prose.style_notes,
    )


def _replace(state: PipelineState, **changes) -> PipelineState:
    return replace(state, **changes)


def _merge_checkpoint(state: PipelineState, checkpoint: PipelineCheckpoint, path: Path) -> PipelineState:
    """
    Fill gaps in the artifact-derived state with per-page progress.

    Pages from the checkpoint are only taken for the stage currently in
    progress: illustrated pages need complete prose, rendered pages need
    complete visuals.
    """
    changes: dict[str, Any] = {}
    if state.plot is None:
        return state

    style_guide = state.style_guide or checkpoint.style_guide
    prose_setup = state.prose_setup or checkpoint.prose_setup
    changes["style_guide"] = style_guide
    changes["prose_setup"] = prose_setup

    page_count = state.page_count
    try:
        if not state.prose_pages and prose_setup is not None and checkpoint.prose_pages:
            pages = checkpoint.prose_pages[:page_count]
            validate_page_sequence(pages, len(pages), "checkpoint prose")
            changes["prose_pages"] = tuple(pages)
        merged = _replace(state, **changes)

        if merged.has_prose and not merged.illustrated_pages and style_guide is not None:
            pages = checkpoint.illustrated_pages[:page_count]
            validate_page_sequence(pages, len(pages), "checkpoint visuals")
            merged = _replace(merged, illustrated_pages=tuple(pages))

        if merged.has_visuals and not merged.rendered_pages:
            pages = checkpoint.rendered_pages[:page_count]
            validate_page_sequence(pages, len(pages), "checkpoint render")
            merged = _replace(merged, rendered_pages=tuple(pages))
    except ValueError as e:
        raise ArtifactFormatError(path, str(e)) from e

    return merged


def load_pipeline_state(folder: Union[str, Path], info: Optional[StageInfo] = None) -> PipelineState:
    """
    Rebuild pipeline state from a story folder.

    Brief and plot are always restored when the stage is past BRIEF; prose and
    visual fields when their artifacts exist; then checkpoint.json fills in
    per-page progress for the stage that was interrupted.
    """
    folder = Path(folder)
    info = info or detect_stage(folder)
    store = ArtifactStore(folder)

    state = _load_base(store, info)

    if store.exists(ArtifactKind.CHECKPOINT):
        checkpoint_path = store.path_for(ArtifactKind.CHECKPOINT)
        checkpoint = _parse(PipelineCheckpoint, _load_raw(store, ArtifactKind.CHECKPOINT), checkpoint_path)
        state = _merge_checkpoint(state, checkpoint, checkpoint_path)

    logger.info(
        f"Loaded {folder.name} at stage {info.stage.value}: "
        f"{len(state.prose_pages)} prose, {len(state.illustrated_pages)} illustrated, "
        f"{len(state.rendered_pages)} rendered pages"
    )
    return state
