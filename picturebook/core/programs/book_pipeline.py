"""
Main pipeline program for generating picture books.

Staged workflow, each stage adding exactly one field to the story record:
1. Extract requirements from free text into a Brief (create only)
2. Generate the plot structure                  -> StoryWithPlot
3. Style guide and prose setup, concurrently; then prose page by page
                                                 -> StoryWithProse
4. Illustration beats page by page              -> ComposedStory
5. Render page images page by page              -> RenderedBook

With a store, every stage boundary and every page is persisted, so a failed
or cancelled run can be resumed from its story folder without redoing work.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from picturebook.config import (
    PipelineConfig,
    attach_story_log,
    book_logger,
    detach_story_log,
    get_book_format,
)
from ..accumulator import accumulate
from ..artifact_store import ArtifactKind, ArtifactStore, create_story_store
from ..briefs import complete_brief, missing_required_fields
from ..capabilities import GenerationCapabilities, ProsePageRequest, RenderPageRequest, VisualBeatsRequest
from ..composer import (
    assemble_book,
    assemble_prose,
    assemble_visuals,
    compose_composed_story,
    compose_story_with_plot,
    compose_story_with_prose,
    project_brief,
)
from ..errors import IncompleteBriefError, PageGenerationError, StageFailedError
from ..events import ProgressEmitter, ProgressListener, ProgressStatus, ProgressTracker, StepKind
from ..resume import detect_stage, load_pipeline_state
from ..types import (
    Brief,
    ComposedStory,
    PipelineState,
    RenderedBook,
    Stage,
    StoryDraft,
    StoryWithPlot,
    StoryWithProse,
)

logger = logging.getLogger(__name__)

START = ProgressStatus.START
COMPLETE = ProgressStatus.COMPLETE
ERROR = ProgressStatus.ERROR

AnyStory = Union[StoryWithPlot, StoryWithProse, ComposedStory]

_STOPPABLE = (Stage.PLOT, Stage.PROSE, Stage.VISUALS, Stage.BOOK)


@dataclass
class PipelineOptions:
    """
    Per-run options.

    Args:
        stop_after: Stop once this stage's record exists and return it
            without a book. None runs to completion.
        store: Artifact store for the story folder. None disables persistence
            unless output_dir is set.
        output_dir: Create a new story folder here once the title is known
            (ignored when store is given).
        format: Print format key. None uses PipelineConfig.default_format.
        listeners: Progress event subscribers.
    """

    stop_after: Optional[Stage] = None
    store: Optional[ArtifactStore] = None
    output_dir: Optional[Path] = None
    format: Optional[str] = None
    listeners: list[ProgressListener] = field(default_factory=list)

    def __post_init__(self):
        if self.stop_after is not None and self.stop_after not in _STOPPABLE:
            raise ValueError(f"Cannot stop after {self.stop_after.value}")
        if self.format is not None:
            get_book_format(self.format)


@dataclass(frozen=True)
class PipelineResult:
    story: AnyStory
    book: Optional[RenderedBook] = None
    folder: Optional[Path] = None

    @property
    def is_complete(self) -> bool:
        return self.book is not None


@dataclass
class _RunContext:
    """Mutable state of one run. Never shared between runs."""

    state: PipelineState
    emitter: ProgressEmitter
    store: Optional[ArtifactStore]
    format: str
    stop_after: Optional[Stage]

    @property
    def title(self) -> str:
        return self.state.brief.title

    def emit(self, kind: StepKind, status: ProgressStatus, page_number: Optional[int] = None, payload: Any = None):
        return self.emitter.emit(kind, status, page_number, payload)

    def save(self, kind: ArtifactKind, data) -> None:
        if self.store is not None:
            self.store.save(kind, data)

    def checkpoint(self) -> None:
        self.save(ArtifactKind.CHECKPOINT, self.state.to_checkpoint())

    def stops_after(self, stage: Stage) -> bool:
        return self.stop_after is not None and self.stop_after is stage


class BookPipeline:
    """
    Picture book generation pipeline.

    Args:
        capabilities: Model-backed operations (DspyCapabilities in production)
        config: Process-wide settings; supplies the default print format
    """

    def __init__(self, capabilities: GenerationCapabilities, config: Optional[PipelineConfig] = None):
        self.capabilities = capabilities
        self.config = config or PipelineConfig()

    # =========================================================================
    # Entry points
    # =========================================================================

    async def create(self, raw_text: str, options: Optional[PipelineOptions] = None) -> PipelineResult:
        """
        Generate a book from a free-text description.

        Raises:
            IncompleteBriefError: the description lacks required brief fields.
                With a store, the partial draft is saved to story.json.
            StageFailedError: a generation stage failed
        """
        options = options or PipelineOptions()
        try:
            draft = await self.capabilities.extract_requirements(raw_text)
        except Exception as e:
            book_logger.generation_failed("(untitled)", e, stage="brief")
            raise StageFailedError(Stage.BRIEF.value) from e

        try:
            brief = complete_brief(draft)
        except IncompleteBriefError:
            store = self._resolve_store(options, draft.title or "untitled-story")
            if store is not None:
                store.save_story(StoryDraft(**{name: value for name, value in draft}))
            logger.warning(f"Brief incomplete, missing: {', '.join(missing_required_fields(draft))}")
            raise

        return await self.run_from_brief(brief, options)

    async def run_from_brief(self, brief: Brief, options: Optional[PipelineOptions] = None) -> PipelineResult:
        """Generate the plot, then continue as run()."""
        brief = project_brief(brief)
        options = self._with_entry_artifact(options, brief.title, ArtifactKind.BRIEF, brief)
        return await self.run_from_state(PipelineState(brief=brief), options)

    async def run(self, story: StoryWithPlot, options: Optional[PipelineOptions] = None) -> PipelineResult:
        """Generate prose, visuals and the rendered book for a story with plot."""
        options = self._with_entry_artifact(options, story.title, ArtifactKind.PLOT, story)
        state = PipelineState(brief=project_brief(story), plot=story.plot)
        return await self.run_from_state(state, options)

    async def run_from_state(self, state: PipelineState, options: Optional[PipelineOptions] = None) -> PipelineResult:
        """
        Continue from a partial state, skipping every stage and page it already holds.

        Raises:
            StageFailedError: a stage failed. Everything before it is persisted;
                page_number says where a per-page stage stopped.
        """
        options = options or PipelineOptions()
        store = self._resolve_store(options, state.brief.title)
        ctx = _RunContext(
            state=state,
            emitter=ProgressEmitter(options.listeners),
            store=store,
            format=options.format or self.config.default_format,
            stop_after=options.stop_after,
        )
        if store is not None:
            ctx.emitter.subscribe(ProgressTracker(store.folder, state.page_count))

        log_handler = attach_story_log(store.folder) if store is not None else None
        started = time.monotonic()
        book_logger.generation_started(ctx.title, _entry_stage(state).value)
        try:
            result = await self._run(ctx)
        except StageFailedError as e:
            book_logger.generation_failed(ctx.title, e.__cause__ or e, stage=e.stage, page_number=e.page_number)
            raise
        finally:
            if log_handler is not None:
                detach_story_log(log_handler)

        if result.is_complete:
            book_logger.generation_completed(ctx.title, time.monotonic() - started)
        return replace(result, folder=store.folder if store is not None else None)

    async def resume(self, folder: Union[str, Path], options: Optional[PipelineOptions] = None) -> PipelineResult:
        """
        Resume the story in `folder` from its furthest completed stage.

        A finished book is returned as stored, without any generation.
        """
        options = options or PipelineOptions()
        folder = Path(folder)
        info = detect_stage(folder)
        state = load_pipeline_state(folder, info)
        store = ArtifactStore(folder)

        if info.is_complete:
            story = _compose_state(state)
            book = RenderedBook.model_validate(store.load(ArtifactKind.BOOK))
            logger.info(f"{folder.name} is already complete")
            return PipelineResult(story=story, book=book, folder=folder)

        logger.info(f"Resuming {folder.name} after stage {info.stage.value}")
        return await self.run_from_state(state, replace(options, store=store))

    # =========================================================================
    # Stages
    # =========================================================================

    async def _run(self, ctx: _RunContext) -> PipelineResult:
        if ctx.state.plot is None:
            await self._plot_stage(ctx)
        story = compose_story_with_plot(ctx.state.brief, ctx.state.plot)
        if ctx.stops_after(Stage.PLOT):
            return PipelineResult(story=story)

        if not ctx.state.has_prose:
            await self._setup_stage(ctx)
            await self._prose_stage(ctx, story)
            story = compose_story_with_prose(story, assemble_prose(ctx.state.prose_setup, ctx.state.prose_pages))
            ctx.save(ArtifactKind.PROSE, story)
        else:
            story = compose_story_with_prose(story, assemble_prose(ctx.state.prose_setup, ctx.state.prose_pages))
        if ctx.stops_after(Stage.PROSE):
            return PipelineResult(story=story)

        if not ctx.state.has_visuals:
            if ctx.state.style_guide is None:
                await self._setup_stage(ctx)
            await self._visuals_stage(ctx, story)
            story = compose_composed_story(
                story, assemble_visuals(ctx.state.style_guide, ctx.state.illustrated_pages)
            )
            if ctx.store is not None:
                ctx.store.save_story(story)
        else:
            story = compose_composed_story(
                story, assemble_visuals(ctx.state.style_guide, ctx.state.illustrated_pages)
            )
        if ctx.stops_after(Stage.VISUALS):
            return PipelineResult(story=story)

        book = await self._render_stage(ctx, story)
        ctx.emit(StepKind.COMPLETE, COMPLETE, payload=book)
        return PipelineResult(story=story, book=book)

    async def _plot_stage(self, ctx: _RunContext) -> None:
        brief = ctx.state.brief
        plot = await self._step(ctx, StepKind.PLOT, lambda: self.capabilities.generate_plot(brief))
        ctx.state = replace(ctx.state, plot=plot)
        ctx.save(ArtifactKind.PLOT, compose_story_with_plot(brief, plot))

    async def _setup_stage(self, ctx: _RunContext) -> None:
        """Style guide and prose setup, concurrently. Only missing pieces are generated."""
        story = compose_story_with_plot(ctx.state.brief, ctx.state.plot)
        steps: dict[str, Awaitable] = {}
        if ctx.state.style_guide is None:
            steps["style_guide"] = self._step(
                ctx, StepKind.STYLE_GUIDE, lambda: self.capabilities.generate_style_guide(story)
            )
        if ctx.state.prose_setup is None:
            steps["prose_setup"] = self._step(
                ctx, StepKind.PROSE_SETUP, lambda: self.capabilities.generate_prose_setup(story)
            )
        if not steps:
            return

        started = time.monotonic()
        ctx.emit(StepKind.SETUP, START)
        outcomes = await asyncio.gather(*steps.values(), return_exceptions=True)

        # Keep whichever half succeeded so a resume only redoes the failed one
        done = {name: value for name, value in zip(steps, outcomes) if not isinstance(value, BaseException)}
        ctx.state = replace(ctx.state, **done)
        ctx.checkpoint()

        failures = [value for value in outcomes if isinstance(value, BaseException)]
        if failures:
            ctx.emit(StepKind.SETUP, ERROR)
            raise failures[0]
        ctx.emit(StepKind.SETUP, COMPLETE)
        book_logger.stage_completed(ctx.title, StepKind.SETUP.value, time.monotonic() - started)

    async def _prose_stage(self, ctx: _RunContext, story: StoryWithPlot) -> None:
        setup = ctx.state.prose_setup

        def generate(page_number: int, prior: tuple):
            return self.capabilities.generate_prose_page(
                ProsePageRequest(story=story, prose_setup=setup, page_number=page_number, prior_pages=prior)
            )

        await self._page_stage(
            ctx,
            StepKind.PROSE,
            StepKind.PROSE_PAGE,
            generate,
            completed=ctx.state.prose_pages,
            record=lambda pages: replace(ctx.state, prose_pages=pages),
        )

    async def _visuals_stage(self, ctx: _RunContext, story: StoryWithProse) -> None:
        style_guide = ctx.state.style_guide
        plot_story = compose_story_with_plot(ctx.state.brief, ctx.state.plot)

        def generate(page_number: int, prior: tuple):
            return self.capabilities.generate_visual_beats(
                VisualBeatsRequest(
                    story=plot_story,
                    style_guide=style_guide,
                    page_number=page_number,
                    prose_page=story.prose.pages[page_number - 1],
                )
            )

        await self._page_stage(
            ctx,
            StepKind.VISUALS,
            StepKind.VISUALS_PAGE,
            generate,
            completed=ctx.state.illustrated_pages,
            record=lambda pages: replace(ctx.state, illustrated_pages=pages),
        )

    async def _render_stage(self, ctx: _RunContext, story: ComposedStory) -> RenderedBook:
        assets_dir = ctx.store.assets_dir if ctx.store is not None else None

        def generate(page_number: int, prior: tuple):
            return self.capabilities.render_page(
                RenderPageRequest(
                    story=story,
                    page_number=page_number,
                    format=ctx.format,
                    prior_pages=prior,
                    assets_dir=assets_dir,
                )
            )

        await self._page_stage(
            ctx,
            StepKind.RENDER,
            StepKind.RENDER_PAGE,
            generate,
            completed=ctx.state.rendered_pages,
            record=lambda pages: replace(ctx.state, rendered_pages=pages),
        )
        book = assemble_book(story, ctx.state.rendered_pages, ctx.format)
        ctx.save(ArtifactKind.BOOK, book)
        return book

    # =========================================================================
    # Step helpers
    # =========================================================================

    async def _step(self, ctx: _RunContext, kind: StepKind, call: Callable[[], Awaitable]):
        """Run one whole-stage call with start/complete/error events."""
        started = time.monotonic()
        ctx.emit(kind, START)
        try:
            result = await call()
        except Exception as e:
            ctx.emit(kind, ERROR, payload=str(e))
            raise StageFailedError(kind.value) from e
        ctx.emit(kind, COMPLETE, payload=result)
        book_logger.stage_completed(ctx.title, kind.value, time.monotonic() - started)
        return result

    async def _page_stage(
        self,
        ctx: _RunContext,
        kind: StepKind,
        page_kind: StepKind,
        generate: Callable[[int, tuple], Awaitable],
        completed: tuple,
        record: Callable[[tuple], PipelineState],
    ) -> None:
        """
        Run a per-page stage through the accumulator.

        After each page the state is updated and checkpointed before the next
        page starts, so a failure on page N leaves pages 1..N-1 on disk.
        """
        started = time.monotonic()
        ctx.emit(kind, START)

        async def generate_one(page_number: int, prior: tuple):
            ctx.emit(page_kind, START, page_number)
            return await generate(page_number, prior)

        async def on_page(page_number: int, result, results: tuple) -> None:
            ctx.state = record(results)
            ctx.checkpoint()
            ctx.emit(page_kind, COMPLETE, page_number, payload=result)
            book_logger.page_completed(ctx.title, kind.value, page_number)

        try:
            await accumulate(ctx.state.page_count, generate_one, completed=completed, on_page=on_page)
        except PageGenerationError as e:
            ctx.emit(page_kind, ERROR, e.page_number, payload=str(e.__cause__))
            ctx.emit(kind, ERROR)
            raise StageFailedError(kind.value, e.page_number) from e

        ctx.emit(kind, COMPLETE)
        book_logger.stage_completed(ctx.title, kind.value, time.monotonic() - started)

    def _with_entry_artifact(
        self, options: Optional[PipelineOptions], title: str, kind: ArtifactKind, record: Brief
    ) -> PipelineOptions:
        """Resolve the store once and persist the record the run starts from, so it can be resumed."""
        options = options or PipelineOptions()
        store = self._resolve_store(options, title)
        if store is not None and not store.exists(kind):
            store.save(kind, record)
        return replace(options, store=store)

    def _resolve_store(self, options: PipelineOptions, title: str) -> Optional[ArtifactStore]:
        if options.store is not None:
            return options.store
        if options.output_dir is not None:
            return create_story_store(title, options.output_dir)
        return None


def _entry_stage(state: PipelineState) -> Stage:
    """The stage a run starting from `state` begins with."""
    if state.plot is None:
        return Stage.PLOT
    if not state.has_prose:
        return Stage.PROSE
    if not state.has_visuals:
        return Stage.VISUALS
    return Stage.BOOK


def _compose_state(state: PipelineState) -> AnyStory:
    """Compose as far as the state reaches, without generating anything."""
    story = compose_story_with_plot(state.brief, state.plot)
    if not state.has_prose:
        return story
    story = compose_story_with_prose(story, assemble_prose(state.prose_setup, state.prose_pages))
    if not state.has_visuals:
        return story
    return compose_composed_story(story, assemble_visuals(state.style_guide, state.illustrated_pages))


async def resume_book(
    folder: Union[str, Path],
    capabilities: GenerationCapabilities,
    options: Optional[PipelineOptions] = None,
    config: Optional[PipelineConfig] = None,
) -> PipelineResult:
    """Detect the stage of a story folder, load its state and continue the pipeline."""
    return await BookPipeline(capabilities, config).resume(folder, options)
