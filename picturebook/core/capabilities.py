"""
Generation capabilities: the model-backed operations the pipeline composes.

The pipeline only depends on the GenerationCapabilities protocol, so tests
(and alternative backends) can pass any object with these coroutines.
DspyCapabilities is the production implementation: dspy modules for text,
Nano Banana Pro for images, each call retried once after a rate limit.
"""

import asyncio
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import dspy

from picturebook.config import PipelineConfig, get_book_format, get_inference_lm, rate_limit_retry
from .modules import (
    PageRenderer,
    PlotGenerator,
    ProsePageWriter,
    ProseSetupWriter,
    RequirementsExtractor,
    StyleGuideGenerator,
    VisualDirector,
    render_placeholder_page,
)
from .types import (
    Brief,
    BriefDraft,
    ComposedStory,
    IllustratedPage,
    PlotStructure,
    ProsePage,
    ProseSetup,
    RenderedPage,
    StoryWithPlot,
    VisualStyleGuide,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class ProsePageRequest:
    story: StoryWithPlot
    prose_setup: ProseSetup
    page_number: int
    prior_pages: tuple[ProsePage, ...] = ()


@dataclass(frozen=True)
class VisualBeatsRequest:
    story: StoryWithPlot
    style_guide: VisualStyleGuide
    page_number: int
    prose_page: ProsePage


@dataclass(frozen=True)
class RenderPageRequest:
    story: ComposedStory
    page_number: int
    format: str = "square-large"
    prior_pages: tuple[RenderedPage, ...] = ()
    assets_dir: Optional[Path] = None  # where page images are written


class GenerationCapabilities(Protocol):
    """Everything the pipeline asks a model to do. All calls may fail."""

    async def extract_requirements(self, raw_text: str) -> BriefDraft: ...

    async def generate_plot(self, brief: Brief) -> PlotStructure: ...

    async def generate_style_guide(self, story: StoryWithPlot) -> VisualStyleGuide: ...

    async def generate_prose_setup(self, story: StoryWithPlot) -> ProseSetup: ...

    async def generate_prose_page(self, request: ProsePageRequest) -> ProsePage: ...

    async def generate_visual_beats(self, request: VisualBeatsRequest) -> IllustratedPage: ...

    async def render_page(self, request: RenderPageRequest) -> RenderedPage: ...


def page_image_filename(page_number: int) -> str:
    return f"page-{page_number:02d}.png"


# =============================================================================
# DSPy implementation
# =============================================================================


class DspyCapabilities:
    """
    Production capabilities backed by dspy and Google GenAI.

    Blocking SDK calls run in worker threads so several stories can generate
    concurrently on one event loop.

    Args:
        config: Model overrides. Defaults to PipelineConfig().
        lm: Optional explicit LM. If provided, bypasses get_inference_lm().
        mock_render: Render placeholder pages instead of calling the image model.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        lm: Optional[dspy.LM] = None,
        mock_render: bool = False,
    ):
        self.config = config or PipelineConfig()
        self.mock_render = mock_render
        self._lm = lm

        self.requirements_extractor = RequirementsExtractor()
        self.plot_generator = PlotGenerator()
        self.style_guide_generator = StyleGuideGenerator()
        self.prose_setup_writer = ProseSetupWriter()
        self.prose_page_writer = ProsePageWriter()
        self.visual_director = VisualDirector()
        self.page_renderer = PageRenderer(self.config.image_model_id)
        self._scratch_dir: Optional[Path] = None

    @property
    def lm(self) -> dspy.LM:
        if self._lm is None:
            self._lm = get_inference_lm(self.config.model_id)
        return self._lm

    async def _predict(self, module: dspy.Module, *args, **kwargs):
        lm = self.lm

        def call():
            with dspy.context(lm=lm):
                return module(*args, **kwargs)

        return await asyncio.to_thread(call)

    @rate_limit_retry
    async def extract_requirements(self, raw_text: str) -> BriefDraft:
        return await self._predict(self.requirements_extractor, raw_text=raw_text)

    @rate_limit_retry
    async def generate_plot(self, brief: Brief) -> PlotStructure:
        return await self._predict(self.plot_generator, brief=brief)

    @rate_limit_retry
    async def generate_style_guide(self, story: StoryWithPlot) -> VisualStyleGuide:
        return await self._predict(self.style_guide_generator, story=story)

    @rate_limit_retry
    async def generate_prose_setup(self, story: StoryWithPlot) -> ProseSetup:
        return await self._predict(self.prose_setup_writer, story=story)

    @rate_limit_retry
    async def generate_prose_page(self, request: ProsePageRequest) -> ProsePage:
        return await self._predict(
            self.prose_page_writer,
            story=request.story,
            prose_setup=request.prose_setup,
            page_number=request.page_number,
            previous_pages=request.prior_pages,
        )

    @rate_limit_retry
    async def generate_visual_beats(self, request: VisualBeatsRequest) -> IllustratedPage:
        return await self._predict(
            self.visual_director,
            story=request.story,
            style_guide=request.style_guide,
            page_number=request.page_number,
            prose_page=request.prose_page,
        )

    @rate_limit_retry
    async def render_page(self, request: RenderPageRequest) -> RenderedPage:
        book_format = get_book_format(request.format)
        assets_dir = request.assets_dir or self._fallback_assets_dir()
        path = Path(assets_dir) / page_image_filename(request.page_number)

        def render() -> None:
            if self.mock_render:
                image_bytes = render_placeholder_page(request.story, request.page_number, book_format)
            else:
                image_bytes = self.page_renderer.render(
                    request.story,
                    request.page_number,
                    book_format,
                    reference_image=_read_reference_image(request.prior_pages),
                )
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image_bytes)

        await asyncio.to_thread(render)
        return RenderedPage(page_number=request.page_number, image=str(path))

    def _fallback_assets_dir(self) -> Path:
        if self._scratch_dir is None:
            self._scratch_dir = Path(tempfile.mkdtemp(prefix="picturebook-"))
            logger.warning(f"No assets directory given, writing page images to {self._scratch_dir}")
        return self._scratch_dir


def _read_reference_image(prior_pages: tuple[RenderedPage, ...]) -> Optional[bytes]:
    """The first rendered page is the style reference for the rest of the book."""
    if not prior_pages:
        return None
    path = Path(prior_pages[0].image)
    return path.read_bytes() if path.is_file() else None
