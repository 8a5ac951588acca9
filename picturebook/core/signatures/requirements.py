"""
DSPy Signature for extracting book requirements from free text.
"""

import dspy


class RequirementsSignature(dspy.Signature):
    """
    Extract children's picture book requirements from what the user wrote.

    Only include fields the user actually mentioned or clearly implied.
    OMIT fields entirely if unknown - never use placeholders, empty strings,
    or invented values. The caller asks follow-up questions for anything missing.
    """

    raw_text: str = dspy.InputField(
        desc="The user's description of the book they want"
    )

    current_brief: str = dspy.InputField(
        desc="JSON of requirements gathered so far (may be {})"
    )

    brief_json: str = dspy.OutputField(
        desc="""JSON object with any of these camelCase keys:
title, storyArc, setting, ageRange {min, max}, pageCount (8-32),
characters [{name, description, role, traits}], tone, moral, interests,
customInstructions, stylePreset.
Return ONLY the JSON object."""
    )
