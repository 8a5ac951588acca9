"""
DSPy Signatures for writing prose: a story-wide setup, then one page at a time.
"""

import dspy


class ProseSetupSignature(dspy.Signature):
    """
    Establish the story's voice and narrative direction.

    Writing voice by age:
    - Ages 2-5: Simple, rhythmic, repetitive patterns
    - Ages 6-9: More complex sentences, richer vocabulary
    """

    story: str = dspy.InputField(
        desc="JSON of the story with plot"
    )

    setup_json: str = dspy.OutputField(
        desc="""JSON object:
{"logline": "one-sentence hook", "theme": "central message", "styleNotes": "writing voice"}
Return ONLY the JSON object."""
    )


class ProsePageSignature(dspy.Signature):
    """
    Write the prose for a single page of a children's picture book.

    Follow the established voice from the prose setup. Keep continuity with
    the previous pages and pace according to page position (early = setup,
    middle = action, late = resolution).

    Ages 2-5: 1-2 sentences per page. Ages 6-9: up to a paragraph.
    Write like the classics. Real emotions. No lessons announced aloud.
    """

    story: str = dspy.InputField(desc="JSON of the story with plot")
    prose_setup: str = dspy.InputField(desc="JSON of logline, theme and styleNotes")
    page_number: int = dspy.InputField(desc="The page to write (1-based)")
    total_pages: int = dspy.InputField(desc="Number of pages in the book")
    previous_pages: str = dspy.InputField(desc="JSON array of the pages written so far")

    page_json: str = dspy.OutputField(
        desc="""JSON object:
{"summary": "what happens", "text": "the prose for the page", "imageConcept": "what to illustrate"}
Return ONLY the JSON object."""
    )
