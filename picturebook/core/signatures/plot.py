"""
DSPy Signature for generating the plot structure from a brief.
"""

import dspy


class PlotSignature(dspy.Signature):
    """
    Generate a story arc summary and plot beats for a children's picture book.

    First capture the emotional, stylistic, and genre essence of the brief.

    STRUCTURE (4-6 beats, ONE sentence each):
    - Introduce character and world
    - The problem or inciting incident
    - Attempts and obstacles (1-2 beats)
    - The turning point
    - Resolution and what's learned

    STORY QUALITY:
    - One clear problem that escalates
    - Character-driven resolution through action, not luck or magic
    - Age-appropriate conflicts children recognize
    - Embed the moral in plot events; never state it explicitly
    - End with emotional closure, not just problem solved
    """

    brief: str = dspy.InputField(
        desc="JSON of the book brief (title, storyArc, setting, ageRange, characters...)"
    )

    plot_json: str = dspy.OutputField(
        desc="""JSON object:
{"storyArcSummary": "1-2 sentences",
 "plotBeats": [{"purpose": "setup|build|conflict|rising_action|twist|climax|payoff|resolution|button",
                "description": "one sentence"}],
 "allowCreativeLiberty": true}
Return ONLY the JSON object."""
    )
