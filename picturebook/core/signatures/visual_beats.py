"""
DSPy Signature for per-page illustration beats.
"""

import dspy


class VisualBeatsSignature(dspy.Signature):
    """
    Create illustration beats for a single page of a children's picture book.

    For the page, create one or more beats:
    - order: Sequence number (1, 2, 3...)
    - purpose: setup, build, twist, climax, payoff, or button
    - summary: What is happening visually
    - emotion: Emotional tone to convey
    - characters: Who appears, their expression, pose, focus level
    - shot: Composition (size, angle, POV, layout, staging)

    Vary shot sizes (wide for establishing, close for emotion), use child's
    eye level for relatability, and match composition to the emotional beat.
    """

    story: str = dspy.InputField(desc="JSON of the story with plot")
    style_guide: str = dspy.InputField(desc="JSON of the visual style guide")
    page_number: int = dspy.InputField(desc="The page to direct (1-based)")
    total_pages: int = dspy.InputField(desc="Number of pages in the book")
    prose_page: str = dspy.InputField(desc="JSON of the page's text and imageConcept")

    beats_json: str = dspy.OutputField(
        desc="""JSON object:
{"beats": [{"order": 1, "purpose": "setup|build|twist|climax|payoff|button",
            "summary": "...", "emotion": "...",
            "characters": [{"id": "character name", "expression": "...", "pose": "...",
                            "focus": "primary|secondary|background"}],
            "shot": {"size": "extreme_wide|wide|medium_wide|medium|medium_close|close_up|extreme_close_up|macro_detail|insert_object",
                     "angle": "eye_level|childs_eye|high_angle|birds_eye|worms_eye|low_angle_hero|three_quarter_view|profile_side|dutch_tilt|isometric_view"}}]}
Return ONLY the JSON object."""
    )
