# Intake and story
from .requirements_extractor import RequirementsExtractor
from .plot_generator import PlotGenerator
from .prose_writer import ProseSetupWriter, ProsePageWriter

# Visuals
from .style_guide_generator import StyleGuideGenerator
from .style_presets import STYLE_PRESETS, StylePreset, get_style_preset, list_style_presets
from .visual_director import VisualDirector

# Rendering
from .page_renderer import PageRenderer, fit_to_format, render_placeholder_page

# Output validation
from .structured_output import StructuredOutput, parse_model

__all__ = [
    # Intake and story
    "RequirementsExtractor",
    "PlotGenerator",
    "ProseSetupWriter",
    "ProsePageWriter",
    # Visuals
    "StyleGuideGenerator",
    "STYLE_PRESETS",
    "StylePreset",
    "get_style_preset",
    "list_style_presets",
    "VisualDirector",
    # Rendering
    "PageRenderer",
    "fit_to_format",
    "render_placeholder_page",
    # Output validation
    "StructuredOutput",
    "parse_model",
]
