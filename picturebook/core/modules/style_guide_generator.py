"""
DSPy Module for designing the book-wide visual style guide.
"""

import dspy

from ..types import StoryWithPlot, VisualStyleGuide
from ..signatures.style_guide import StyleGuideSignature
from .structured_output import StructuredOutput, to_prompt_json
from .style_presets import get_style_preset


class StyleGuideGenerator(dspy.Module):
    """
    Generate a VisualStyleGuide for a story.

    When the brief names a known style preset, the preset's art direction is
    given to the model and also forced onto the result.
    """

    def __init__(self):
        super().__init__()
        self.generate = dspy.ChainOfThought(StyleGuideSignature)
        self.output = StructuredOutput()

    def forward(self, story: StoryWithPlot) -> VisualStyleGuide:
        preset = get_style_preset(story.style_preset)
        result = self.generate(
            story=to_prompt_json(story),
            style_preset=preset.to_prompt_string() if preset else "none",
        )
        guide = self.output(VisualStyleGuide, result.style_guide_json, target="style guide")
        if preset:
            guide = guide.model_copy(update={"art_direction": preset.art_direction})
        return guide
