"""Record builders and an in-memory capability set for unit tests."""

import asyncio
from pathlib import Path
from typing import Optional

from picturebook.core.capabilities import (
    ProsePageRequest,
    RenderPageRequest,
    VisualBeatsRequest,
    page_image_filename,
)
from picturebook.core.composer import (
    assemble_prose,
    assemble_visuals,
    compose_composed_story,
    compose_story_with_prose,
)
from picturebook.core.types import (
    Brief,
    BriefDraft,
    ComposedStory,
    IllustratedPage,
    PlotStructure,
    ProsePage,
    ProseSetup,
    RenderedPage,
    StoryWithPlot,
    StoryWithProse,
    VisualStyleGuide,
)


def make_brief(page_count: int = 8, **overrides) -> Brief:
    values = dict(
        title="The Brave Little Hedgehog",
        story_arc="a shy hedgehog finds courage",
        setting="a moonlit forest",
        age_range={"min": 4, "max": 6},
        page_count=page_count,
        characters=[{"name": "Hazel", "description": "a small hedgehog with a red scarf"}],
        tone="warm",
    )
    values.update(overrides)
    return Brief(**values)


def make_plot() -> PlotStructure:
    return PlotStructure(
        story_arc_summary="Hazel is afraid of the dark until a lost firefly needs her help.",
        plot_beats=[
            {"purpose": "setup", "description": "Hazel hides in her burrow every night."},
            {"purpose": "conflict", "description": "A firefly loses its way home."},
            {"purpose": "rising_action", "description": "Hazel follows the fading light into the woods."},
            {"purpose": "climax", "description": "She lights the way with glow-worms she befriends."},
            {"purpose": "resolution", "description": "Hazel finds the night is full of friends."},
        ],
    )


def make_story(page_count: int = 8) -> StoryWithPlot:
    brief = make_brief(page_count)
    return StoryWithPlot(**{name: getattr(brief, name) for name in Brief.model_fields}, plot=make_plot())


def make_style_guide() -> VisualStyleGuide:
    return VisualStyleGuide(
        art_direction={"genre": ["picture book"], "medium": ["watercolor"], "technique": ["soft washes"]},
        setting={"location": "forest", "time_of_day": "night"},
        lighting={"scheme": "moonlight"},
    )


def make_prose_setup() -> ProseSetup:
    return ProseSetup(logline="A shy hedgehog lights the way.", theme="courage", style_notes="gentle")


def make_prose_page(page_number: int) -> ProsePage:
    return ProsePage(
        summary=f"Page {page_number} happens",
        text=f"Hazel takes step number {page_number}.",
        image_concept=f"Hazel in the forest, moment {page_number}",
    )


def make_illustrated_page(page_number: int) -> IllustratedPage:
    return IllustratedPage(
        page_number=page_number,
        beats=[
            {
                "order": 1,
                "purpose": "build",
                "summary": f"Hazel on page {page_number}",
                "emotion": "curious",
                "characters": [{"id": "Hazel", "expression": "wide-eyed", "pose": "tiptoe", "focus": "primary"}],
                "shot": {"size": "medium", "angle": "childs_eye"},
            }
        ],
    )


class FakeCapabilities:
    """
    In-memory capabilities that record every call.

    Args:
        fail_on: {"prose": 3} makes prose page 3 fail; whole-stage steps use
            page 0 ({"plot": 0}).
        draft: What extract_requirements returns.
    """

    def __init__(self, fail_on: Optional[dict[str, int]] = None, draft: Optional[BriefDraft] = None):
        self.fail_on = dict(fail_on or {})
        self.draft = draft
        self.calls: list[tuple[str, Optional[int]]] = []
        self.prose_requests: list[ProsePageRequest] = []
        self.render_requests: list[RenderPageRequest] = []

    def _record(self, name: str, page_number: Optional[int] = None) -> None:
        self.calls.append((name, page_number))
        if self.fail_on.get(name) == (page_number or 0):
            raise RuntimeError(f"{name} failed on page {page_number}")

    def calls_to(self, name: str) -> list[Optional[int]]:
        return [page for call, page in self.calls if call == name]

    async def extract_requirements(self, raw_text: str) -> BriefDraft:
        self._record("requirements")
        if self.draft is not None:
            return self.draft
        brief = make_brief()
        return BriefDraft(**{name: getattr(brief, name) for name in Brief.model_fields})

    async def generate_plot(self, brief: Brief) -> PlotStructure:
        await asyncio.sleep(0)
        self._record("plot")
        return make_plot()

    async def generate_style_guide(self, story: StoryWithPlot) -> VisualStyleGuide:
        await asyncio.sleep(0)
        self._record("style-guide")
        return make_style_guide()

    async def generate_prose_setup(self, story: StoryWithPlot) -> ProseSetup:
        await asyncio.sleep(0)
        self._record("prose-setup")
        return make_prose_setup()

    async def generate_prose_page(self, request: ProsePageRequest) -> ProsePage:
        await asyncio.sleep(0)
        self.prose_requests.append(request)
        self._record("prose", request.page_number)
        return make_prose_page(request.page_number)

    async def generate_visual_beats(self, request: VisualBeatsRequest) -> IllustratedPage:
        await asyncio.sleep(0)
        self._record("visuals", request.page_number)
        return make_illustrated_page(request.page_number)

    async def render_page(self, request: RenderPageRequest) -> RenderedPage:
        await asyncio.sleep(0)
        self.render_requests.append(request)
        self._record("render", request.page_number)
        folder = request.assets_dir or Path("memory")
        return RenderedPage(page_number=request.page_number, image=str(folder / page_image_filename(request.page_number)))


def make_story_with_prose(page_count: int = 8) -> StoryWithProse:
    prose = assemble_prose(make_prose_setup(), [make_prose_page(n) for n in range(1, page_count + 1)])
    return compose_story_with_prose(make_story(page_count), prose)


def make_composed_story(page_count: int = 8) -> ComposedStory:
    visuals = assemble_visuals(
        make_style_guide(), [make_illustrated_page(n) for n in range(1, page_count + 1)]
    )
    return compose_composed_story(make_story_with_prose(page_count), visuals)
