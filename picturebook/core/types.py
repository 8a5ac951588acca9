"""
Centralized domain types for the Picture Book Generator.

Every record the pipeline produces is defined here so the composition chain
is visible in one place:

    Brief -> StoryWithPlot -> StoryWithProse -> ComposedStory -> RenderedBook

Each stage type is the previous type plus exactly one field. Story-level
records serialize with camelCase keys; visual style blocks keep their
snake_case keys and pass unknown keys through untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from picturebook.config.book import BOOK_CONSTANTS

NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]

BookFormatKey = Literal["square-small", "square-large", "landscape", "portrait-small", "portrait-large"]


class StoryModel(BaseModel):
    """Base for story records: immutable, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize the way artifacts are written to disk."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class VisualModel(BaseModel):
    """Base for style building blocks: snake_case keys, extra keys kept."""

    model_config = ConfigDict(frozen=True, extra="allow")


def validate_page_sequence(pages: Sequence[Any], page_count: int, label: str) -> None:
    """
    Check a per-page array is exactly page_count long and, where pages carry
    a page_number, numbered 1..page_count with no gaps or duplicates.
    """
    if len(pages) != page_count:
        raise ValueError(f"{label} has {len(pages)} pages, expected {page_count}")
    for index, page in enumerate(pages, start=1):
        number = getattr(page, "page_number", index)
        if number != index:
            raise ValueError(f"{label} page at position {index} is numbered {number}")


# =============================================================================
# Common Types
# =============================================================================


class AgeRange(StoryModel):
    min: int = Field(ge=BOOK_CONSTANTS["min_age"], le=BOOK_CONSTANTS["max_age"])
    max: int = Field(ge=BOOK_CONSTANTS["min_age"], le=BOOK_CONSTANTS["max_age"])

    @model_validator(mode="after")
    def _check_order(self) -> "AgeRange":
        if self.min > self.max:
            raise ValueError("ageRange.min must be <= ageRange.max")
        return self

    def __str__(self) -> str:
        return f"{self.min}-{self.max}"


class StoryCharacter(StoryModel):
    """A cast member. Description is required for illustration consistency."""

    name: NonEmptyStr
    description: NonEmptyStr
    role: Optional[str] = None  # protagonist, sidekick, mentor...
    traits: list[NonEmptyStr] = Field(default_factory=list)
    notes: list[NonEmptyStr] = Field(default_factory=list)
    visual_description: Optional[str] = None


BeatPurpose = Literal[
    "setup",
    "build",
    "conflict",
    "rising_action",
    "twist",
    "climax",
    "payoff",
    "resolution",
    "button",
]


# =============================================================================
# Stage 1: Brief
# =============================================================================


class Brief(StoryModel):
    """User requirements for a book."""

    title: NonEmptyStr
    story_arc: NonEmptyStr  # e.g. "hero overcomes fear"
    setting: NonEmptyStr
    age_range: AgeRange
    page_count: int = Field(
        default=BOOK_CONSTANTS["default_page_count"],
        ge=BOOK_CONSTANTS["min_page_count"],
        le=BOOK_CONSTANTS["max_page_count"],
    )
    characters: list[StoryCharacter] = Field(min_length=1)
    tone: Optional[str] = None
    moral: Optional[str] = None
    interests: list[NonEmptyStr] = Field(default_factory=list)
    custom_instructions: list[NonEmptyStr] = Field(default_factory=list)
    style_preset: Optional[str] = None


class BriefDraft(StoryModel):
    """Partially extracted requirements. Every field may still be missing."""

    title: Optional[str] = None
    story_arc: Optional[str] = None
    setting: Optional[str] = None
    age_range: Optional[AgeRange] = None
    page_count: Optional[int] = Field(
        default=None, ge=BOOK_CONSTANTS["min_page_count"], le=BOOK_CONSTANTS["max_page_count"]
    )
    characters: Optional[list[StoryCharacter]] = None
    tone: Optional[str] = None
    moral: Optional[str] = None
    interests: Optional[list[NonEmptyStr]] = None
    custom_instructions: Optional[list[NonEmptyStr]] = None
    style_preset: Optional[str] = None


# =============================================================================
# Stage 2: Plot
# =============================================================================


class PlotBeat(StoryModel):
    purpose: BeatPurpose
    description: NonEmptyStr  # one sentence


class PlotStructure(StoryModel):
    story_arc_summary: NonEmptyStr
    plot_beats: list[PlotBeat] = Field(
        min_length=BOOK_CONSTANTS["min_plot_beats"], max_length=BOOK_CONSTANTS["max_plot_beats"]
    )
    allow_creative_liberty: bool = True


class StoryWithPlot(Brief):
    plot: PlotStructure


class StoryDraft(BriefDraft):
    """An intake draft as saved to story.json with kind "draft"."""

    plot: Optional[PlotStructure] = None


# =============================================================================
# Stage 3: Prose
# =============================================================================


class ProseSetup(StoryModel):
    logline: NonEmptyStr
    theme: NonEmptyStr
    style_notes: Optional[str] = None


class ProsePage(StoryModel):
    summary: NonEmptyStr
    text: NonEmptyStr
    image_concept: NonEmptyStr


class Prose(ProseSetup):
    pages: list[ProsePage]


class StoryWithProse(StoryWithPlot):
    prose: Prose

    @model_validator(mode="after")
    def _check_prose_pages(self) -> "StoryWithProse":
        validate_page_sequence(self.prose.pages, self.page_count, "prose")
        return self


# =============================================================================
# Stage 4: Visual direction
# =============================================================================


class ArtDirection(VisualModel):
    genre: list[NonEmptyStr] = Field(default_factory=list)
    medium: list[NonEmptyStr] = Field(default_factory=list)
    technique: list[NonEmptyStr] = Field(default_factory=list)
    style_strength: Optional[float] = Field(default=None, ge=0, le=1)


class Setting(VisualModel):
    biome: Optional[str] = None
    location: Optional[str] = None
    detail_description: Optional[str] = None
    season: Optional[str] = None
    time_of_day: Optional[str] = None
    landmarks: list[NonEmptyStr] = Field(default_factory=list)
    diegetic_lights: list[NonEmptyStr] = Field(default_factory=list)


class VisualStyleGuide(VisualModel):
    """
    Global illustration style.

    Lighting, color script, mood, atmosphere, materials and constraints are
    free-form blocks the pipeline only carries from the style guide to the
    renderer, so they are kept as plain dicts.
    """

    art_direction: ArtDirection
    setting: Setting
    lighting: Optional[dict[str, Any]] = None
    color_script: Optional[dict[str, Any]] = None
    mood_narrative: Optional[dict[str, Any]] = None
    atmosphere_fx: Optional[dict[str, Any]] = None
    materials_microdetail: Optional[dict[str, Any]] = None
    constraints: Optional[dict[str, Any]] = None


ShotSize = Literal[
    "extreme_wide", "wide", "medium_wide", "medium", "medium_close",
    "close_up", "extreme_close_up", "macro_detail", "insert_object",
]
ShotAngle = Literal[
    "eye_level", "childs_eye", "high_angle", "birds_eye", "worms_eye",
    "low_angle_hero", "three_quarter_view", "profile_side", "dutch_tilt", "isometric_view",
]


class ShotComposition(VisualModel):
    size: ShotSize
    angle: ShotAngle
    pov: Optional[str] = None
    composition: Optional[list[str]] = None
    layout: Optional[str] = None
    staging: Optional[dict[str, Any]] = None
    cinematography: Optional[dict[str, Any]] = None
    overrides: Optional[dict[str, Any]] = None  # per-shot overrides of the style guide


class BeatCharacter(VisualModel):
    id: NonEmptyStr  # character name from the brief
    expression: NonEmptyStr
    pose: NonEmptyStr
    focus: Literal["primary", "secondary", "background"]


class IllustrationBeat(VisualModel):
    order: int = Field(ge=1)
    purpose: Literal["setup", "build", "twist", "climax", "payoff", "button"]
    summary: NonEmptyStr
    emotion: NonEmptyStr
    characters: list[BeatCharacter] = Field(default_factory=list)
    setting: Optional[Setting] = None  # overrides the style guide setting
    shot: ShotComposition


class IllustratedPage(StoryModel):
    page_number: int = Field(ge=1)
    beats: list[IllustrationBeat] = Field(min_length=1)


class VisualDirection(StoryModel):
    style: VisualStyleGuide
    illustrated_pages: list[IllustratedPage]


class ComposedStory(StoryWithProse):
    """The canonical full story record, ready for rendering."""

    visuals: VisualDirection

    @model_validator(mode="after")
    def _check_illustrated_pages(self) -> "ComposedStory":
        validate_page_sequence(self.visuals.illustrated_pages, self.page_count, "visuals")
        return self

    def page_context(self, page_number: int) -> tuple[ProsePage, IllustratedPage]:
        """The prose and visual direction for one page."""
        if not 1 <= page_number <= self.page_count:
            raise ValueError(f"Page {page_number} out of range 1..{self.page_count}")
        return self.prose.pages[page_number - 1], self.visuals.illustrated_pages[page_number - 1]


# =============================================================================
# Stage 5: Rendered output
# =============================================================================


class RenderedPage(StoryModel):
    page_number: int = Field(ge=1)
    image: NonEmptyStr  # URL or local path


class RenderedBook(StoryModel):
    story_title: NonEmptyStr
    age_range: AgeRange
    format: BookFormatKey = "square-large"
    pages: list[RenderedPage] = Field(min_length=1)
    created_at: datetime

    @model_validator(mode="after")
    def _check_pages(self) -> "RenderedBook":
        validate_page_sequence(self.pages, len(self.pages), "book")
        return self


# =============================================================================
# Pipeline progress
# =============================================================================


class Stage(str, Enum):
    """Pipeline states, in order. BOOK is terminal (the book is complete)."""

    BRIEF = "brief"
    PLOT = "plot"
    PROSE = "prose"
    VISUALS = "visuals"
    BOOK = "book"

    @property
    def order(self) -> int:
        return list(Stage).index(self)


class PipelineCheckpoint(StoryModel):
    """Intra-stage progress saved to checkpoint.json after setup and every page."""

    style_guide: Optional[VisualStyleGuide] = None
    prose_setup: Optional[ProseSetup] = None
    prose_pages: list[ProsePage] = Field(default_factory=list)
    illustrated_pages: list[IllustratedPage] = Field(default_factory=list)
    rendered_pages: list[RenderedPage] = Field(default_factory=list)


@dataclass(frozen=True)
class PipelineState:
    """
    Partial composed state. Pass what exists; the pipeline fills in the rest.

    Used both for fresh runs (brief and plot only) and for resume, where the
    Resume Detector fills in whatever the story folder holds.
    """

    brief: Brief
    plot: Optional[PlotStructure] = None
    style_guide: Optional[VisualStyleGuide] = None
    prose_setup: Optional[ProseSetup] = None
    prose_pages: tuple[ProsePage, ...] = field(default_factory=tuple)
    illustrated_pages: tuple[IllustratedPage, ...] = field(default_factory=tuple)
    rendered_pages: tuple[RenderedPage, ...] = field(default_factory=tuple)

    @property
    def page_count(self) -> int:
        return self.brief.page_count

    @property
    def has_prose(self) -> bool:
        return self.prose_setup is not None and len(self.prose_pages) == self.page_count

    @property
    def has_visuals(self) -> bool:
        return self.style_guide is not None and len(self.illustrated_pages) == self.page_count

    def to_checkpoint(self) -> PipelineCheckpoint:
        return PipelineCheckpoint(
            style_guide=self.style_guide,
            prose_setup=self.prose_setup,
            prose_pages=list(self.prose_pages),
            illustrated_pages=list(self.illustrated_pages),
            rendered_pages=list(self.rendered_pages),
        )
