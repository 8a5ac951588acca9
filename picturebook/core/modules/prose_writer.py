"""
DSPy Modules for writing prose: story-wide setup, then page by page.

Pages are written one at a time with every earlier page in the prompt so the
voice and plot stay continuous; the caller threads those pages through.
"""

from typing import Sequence

import dspy

from ..types import ProsePage, ProseSetup, StoryWithPlot
from ..signatures.prose import ProsePageSignature, ProseSetupSignature
from .structured_output import StructuredOutput, to_prompt_json


class ProseSetupWriter(dspy.Module):
    """Generate logline, theme and style notes once per book."""

    def __init__(self):
        super().__init__()
        self.generate = dspy.ChainOfThought(ProseSetupSignature)
        self.output = StructuredOutput()

    def forward(self, story: StoryWithPlot) -> ProseSetup:
        result = self.generate(story=to_prompt_json(story))
        return self.output(ProseSetup, result.setup_json, target="prose setup")


class ProsePageWriter(dspy.Module):
    """Write a single page of prose."""

    def __init__(self):
        super().__init__()
        self.generate = dspy.ChainOfThought(ProsePageSignature)
        self.output = StructuredOutput()

    def forward(
        self,
        story: StoryWithPlot,
        prose_setup: ProseSetup,
        page_number: int,
        previous_pages: Sequence[ProsePage] = (),
    ) -> ProsePage:
        """
        Args:
            story: The story with plot
            prose_setup: Voice and direction from ProseSetupWriter
            page_number: Page to write (1-based)
            previous_pages: Pages 1..page_number-1, in order

        Returns:
            ProsePage with summary, text and image concept
        """
        result = self.generate(
            story=to_prompt_json(story),
            prose_setup=to_prompt_json(prose_setup),
            page_number=page_number,
            total_pages=story.page_count,
            previous_pages=to_prompt_json(list(previous_pages)),
        )
        return self.output(ProsePage, result.page_json, target=f"prose page {page_number}")
