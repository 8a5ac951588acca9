"""
DSPy Module for per-page illustration direction.
"""

import dspy
from pydantic import BaseModel, Field

from ..types import IllustratedPage, IllustrationBeat, ProsePage, StoryWithPlot, VisualStyleGuide
from ..signatures.visual_beats import VisualBeatsSignature
from .structured_output import StructuredOutput, to_prompt_json


class _PageBeats(BaseModel):
    # The page number is known to the caller; the model only writes beats
    beats: list[IllustrationBeat] = Field(min_length=1)


class VisualDirector(dspy.Module):
    """Generate the illustration beats for one page."""

    def __init__(self):
        super().__init__()
        self.generate = dspy.ChainOfThought(VisualBeatsSignature)
        self.output = StructuredOutput(
            schema_notes="IllustrationBeat.purpose must be: setup, build, twist, climax, payoff, or button"
        )

    def forward(
        self,
        story: StoryWithPlot,
        style_guide: VisualStyleGuide,
        page_number: int,
        prose_page: ProsePage,
    ) -> IllustratedPage:
        result = self.generate(
            story=to_prompt_json(story),
            style_guide=to_prompt_json(style_guide),
            page_number=page_number,
            total_pages=story.page_count,
            prose_page=to_prompt_json(prose_page),
        )
        parsed = self.output(_PageBeats, result.beats_json, target=f"visuals page {page_number}")
        return IllustratedPage(page_number=page_number, beats=parsed.beats)
