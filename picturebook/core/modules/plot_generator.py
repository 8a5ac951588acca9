"""
DSPy Module for generating plot structure.
"""

import dspy

from ..types import Brief, PlotStructure
from ..signatures.plot import PlotSignature
from .structured_output import StructuredOutput, to_prompt_json


class PlotGenerator(dspy.Module):
    """
    Generate a PlotStructure (arc summary and 4-6 beats) from a brief.

    Uses Chain of Thought so the model settles the arc before writing beats.
    """

    def __init__(self):
        super().__init__()
        self.generate = dspy.ChainOfThought(PlotSignature)
        self.output = StructuredOutput(
            schema_notes="plotBeats must have 4-6 entries; purpose must be one of "
            "setup, build, conflict, rising_action, twist, climax, payoff, resolution, button"
        )

    def forward(self, brief: Brief) -> PlotStructure:
        result = self.generate(brief=to_prompt_json(brief))
        return self.output(PlotStructure, result.plot_json, target="plot")
