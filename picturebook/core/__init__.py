# Picture Book Generator - Core Domain

# Re-export types for convenient access
from .types import (
    Brief,
    BriefDraft,
    StoryWithPlot,
    StoryWithProse,
    ComposedStory,
    RenderedBook,
    PipelineState,
    Stage,
)
from .errors import (
    PicturebookError,
    ResumeError,
    StageFailedError,
    NoResumableArtifactError,
    AmbiguousArtifactError,
    ArtifactFormatError,
    IncompleteBriefError,
)
from .artifact_store import ArtifactKind, ArtifactStore, find_latest_story_folder
from .resume import StageInfo, detect_stage, load_pipeline_state

__all__ = [
    # Records
    "Brief",
    "BriefDraft",
    "StoryWithPlot",
    "StoryWithProse",
    "ComposedStory",
    "RenderedBook",
    "PipelineState",
    "Stage",
    # Errors
    "PicturebookError",
    "ResumeError",
    "StageFailedError",
    "NoResumableArtifactError",
    "AmbiguousArtifactError",
    "ArtifactFormatError",
    "IncompleteBriefError",
    # Story folders
    "ArtifactKind",
    "ArtifactStore",
    "find_latest_story_folder",
    "StageInfo",
    "detect_stage",
    "load_pipeline_state",
]
