# Intake
from .requirements import RequirementsSignature

# Story
from .plot import PlotSignature
from .prose import ProseSetupSignature, ProsePageSignature

# Visuals
from .style_guide import StyleGuideSignature
from .visual_beats import VisualBeatsSignature

# Output repair
from .repair import RepairJsonSignature

__all__ = [
    # Intake
    "RequirementsSignature",
    # Story
    "PlotSignature",
    "ProseSetupSignature",
    "ProsePageSignature",
    # Visuals
    "StyleGuideSignature",
    "VisualBeatsSignature",
    # Output repair
    "RepairJsonSignature",
]
