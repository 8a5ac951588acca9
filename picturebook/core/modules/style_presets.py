"""
Named art-direction presets a brief can request via stylePreset.

A preset fixes the art direction of the style guide; the rest of the guide
(setting, lighting, color script...) is still designed per story. Presets are
written for Nano Banana Pro (Gemini 3 Pro Image): concise style direction and
a specific lighting note rather than keyword lists.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..types import ArtDirection

logger = logging.getLogger(__name__)


class StylePresetType(Enum):
    """Available style presets."""

    WATERCOLOR_INK = "watercolor_ink"
    DIGITAL_CARTOON = "digital_cartoon"
    PASTEL_SOFT = "pastel_soft"
    GOUACHE_STORYBOOK = "gouache_storybook"
    CLAYMATION = "claymation"


@dataclass(frozen=True)
class StylePreset:
    name: str
    description: str
    art_direction: ArtDirection
    lighting_direction: str

    def to_prompt_string(self) -> str:
        art = self.art_direction
        return (
            f"{self.name}: genre {', '.join(art.genre)}; medium {', '.join(art.medium)}; "
            f"technique {', '.join(art.technique)}. Lighting: {self.lighting_direction}"
        )


STYLE_PRESETS: dict[StylePresetType, StylePreset] = {

    StylePresetType.WATERCOLOR_INK: StylePreset(
        name="Watercolor with Ink Linework",
        description="Soft watercolor washes with fine ink linework. Best for nature stories and gentle emotional journeys.",
        art_direction=ArtDirection(
            genre=["children's picture book", "naturalist"],
            medium=["watercolor", "ink"],
            technique=["loose washes", "fine linework", "visible brushstrokes"],
            style_strength=0.8,
        ),
        lighting_direction="soft diffused daylight, gentle shadows with warm undertones",
    ),

    StylePresetType.DIGITAL_CARTOON: StylePreset(
        name="Digital Cartoon with Soft Lines",
        description="Clean digital illustration with rounded lines and vibrant colors. Best for humor and action.",
        art_direction=ArtDirection(
            genre=["children's picture book", "cartoon"],
            medium=["digital"],
            technique=["soft rounded lines", "flat color", "subtle cel-shading"],
            style_strength=0.7,
        ),
        lighting_direction="bright even lighting with subtle cel-shading, cheerful atmosphere",
    ),

    StylePresetType.PASTEL_SOFT: StylePreset(
        name="Pastel (Soft & Whimsical)",
        description="Gentle pastel colors with soft edges and a dreamy atmosphere. Best for bedtime stories.",
        art_direction=ArtDirection(
            genre=["children's picture book", "whimsical"],
            medium=["pastel", "colored pencil"],
            technique=["soft diffused edges", "pale palette", "minimal linework"],
            style_strength=0.75,
        ),
        lighting_direction="soft glowing ambient light like twilight or moonlight, minimal shadows",
    ),

    StylePresetType.GOUACHE_STORYBOOK: StylePreset(
        name="Gouache Storybook",
        description="Rich opaque gouache with bold colors and visible brushwork. Best for traditional tales.",
        art_direction=ArtDirection(
            genre=["children's picture book", "classic storybook"],
            medium=["gouache"],
            technique=["opaque layering", "painterly brushstrokes", "textured paper"],
            style_strength=0.85,
        ),
        lighting_direction="warm golden afternoon light with rich shadows",
    ),

    StylePresetType.CLAYMATION: StylePreset(
        name="Claymation / Stop-Motion Look",
        description="3D clay-like characters with chunky handmade forms. Best for quirky humor.",
        art_direction=ArtDirection(
            genre=["children's picture book", "stop-motion"],
            medium=["3d clay"],
            technique=["visible fingerprints", "chunky rounded forms", "miniature set"],
            style_strength=0.9,
        ),
        lighting_direction="warm soft studio lighting as if on a miniature film set",
    ),
}


def get_style_preset(name: Optional[str]) -> Optional[StylePreset]:
    """Get a preset by name (case-insensitive), or None if there is no such preset."""
    if not name:
        return None
    name_lower = name.lower().replace(" ", "_").replace("-", "_")
    for preset_type in StylePresetType:
        if preset_type.value == name_lower:
            return STYLE_PRESETS[preset_type]
    logger.warning(f"Unknown style preset '{name}', generating a new style")
    return None


def list_style_presets() -> list[str]:
    return [preset_type.value for preset_type in StylePresetType]
