"""
DSPy Signature for the book-wide visual style guide.
"""

import dspy


class StyleGuideSignature(dspy.Signature):
    """
    Design a cohesive visual style guide for a children's picture book.

    Establish art direction, default setting, lighting, color script, mood,
    atmosphere and constraints (things to avoid, e.g. scary imagery).

    The style should complement the story's emotional arc, the target age
    range (simpler for younger readers) and the setting. If a style preset is
    given, use its art direction EXACTLY and design the rest around it.
    """

    story: str = dspy.InputField(
        desc="JSON of the story with plot"
    )

    style_preset: str = dspy.InputField(
        desc="Requested art style preset, or 'none'"
    )

    style_guide_json: str = dspy.OutputField(
        desc="""JSON object with snake_case keys:
{"art_direction": {"genre": [], "medium": [], "technique": [], "style_strength": 0.0-1.0},
 "setting": {"biome", "location", "detail_description", "season", "time_of_day", "landmarks": [], "diegetic_lights": []},
 "lighting": {...}, "color_script": {...}, "mood_narrative": {...},
 "atmosphere_fx": {...}, "materials_microdetail": {...}, "constraints": {...}}
Return ONLY the JSON object."""
    )
