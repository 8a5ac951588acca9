"""
Stage composition: pure functions that grow the story record one field at a time.

Each stage's output is merged into the previous record to produce the next
record type. Composition never overwrites: adding a field the previous record
already has raises FieldCollisionError.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence, TypeVar

from pydantic import BaseModel

from .errors import FieldCollisionError
from .types import (
    Brief,
    ComposedStory,
    IllustratedPage,
    PlotStructure,
    Prose,
    ProsePage,
    ProseSetup,
    RenderedBook,
    RenderedPage,
    StoryWithPlot,
    StoryWithProse,
    VisualDirection,
    VisualStyleGuide,
    validate_page_sequence,
)

Next = TypeVar("Next", bound=BaseModel)


def compose(previous: BaseModel, field_name: str, value: object, into: type[Next]) -> Next:
    """
    Return a new `into` record holding every field of `previous` plus `field_name`.

    Nested models are carried over by reference (they are frozen), so nothing
    from earlier stages is copied or changed.

    Raises:
        FieldCollisionError: if `previous` already has `field_name`
        TypeError: if `into` is not exactly `previous` plus that one field
    """
    previous_fields = set(type(previous).model_fields)
    if field_name in previous_fields:
        raise FieldCollisionError(field_name, type(previous).__name__)

    added = set(into.model_fields) - previous_fields
    if added != {field_name} or not previous_fields <= set(into.model_fields):
        raise TypeError(
            f"{into.__name__} is not {type(previous).__name__} plus '{field_name}' (adds {sorted(added)})"
        )

    values = {name: getattr(previous, name) for name in previous_fields}
    values[field_name] = value
    return into(**values)


def project_brief(record: Brief) -> Brief:
    """Strip any later-stage fields, leaving just the brief."""
    if type(record) is Brief:
        return record
    return Brief(**{name: getattr(record, name) for name in Brief.model_fields})


# =============================================================================
# Stage transitions
# =============================================================================


def compose_story_with_plot(brief: Brief, plot: PlotStructure) -> StoryWithPlot:
    return compose(brief, "plot", plot, StoryWithPlot)


def compose_story_with_prose(story: StoryWithPlot, prose: Prose) -> StoryWithProse:
    return compose(story, "prose", prose, StoryWithProse)


def compose_composed_story(story: StoryWithProse, visuals: VisualDirection) -> ComposedStory:
    return compose(story, "visuals", visuals, ComposedStory)


# =============================================================================
# Stage assembly
# =============================================================================


def assemble_prose(setup: ProseSetup, pages: Sequence[ProsePage]) -> Prose:
    return compose(setup, "pages", list(pages), Prose)


def assemble_visuals(style: VisualStyleGuide, pages: Sequence[IllustratedPage]) -> VisualDirection:
    return VisualDirection(style=style, illustrated_pages=list(pages))


def assemble_book(
    story: ComposedStory,
    pages: Sequence[RenderedPage],
    book_format: str = "square-large",
    created_at: Optional[datetime] = None,
) -> RenderedBook:
    """Assemble rendered pages into a book. Pure: no generation, just structure."""
    validate_page_sequence(pages, story.page_count, "book")
    return RenderedBook(
        story_title=story.title,
        age_range=story.age_range,
        format=book_format,
        pages=list(pages),
        created_at=created_at or datetime.now(timezone.utc),
    )
