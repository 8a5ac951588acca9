"""Unit tests for DSPy signatures."""

from picturebook.core.signatures import (
    PlotSignature,
    ProsePageSignature,
    ProseSetupSignature,
    RepairJsonSignature,
    RequirementsSignature,
    StyleGuideSignature,
    VisualBeatsSignature,
)


def get_field_desc(signature_class, field_name: str) -> str:
    """Extract the desc from a DSPy signature field."""
    field_info = signature_class.model_fields[field_name]
    extra = field_info.json_schema_extra or {}
    return extra.get("desc", "")


class TestStorySignatures:
    """Tests for the brief, plot and prose signatures."""

    def test_requirements_fields(self):
        fields = RequirementsSignature.model_fields
        assert "raw_text" in fields
        assert "current_brief" in fields
        assert "brief_json" in fields

    def test_plot_output_names_wire_keys(self):
        """The output desc should spell out the camelCase keys the parser expects."""
        desc = get_field_desc(PlotSignature, "plot_json")
        assert "storyArcSummary" in desc
        assert "plotBeats" in desc

    def test_plot_docstring_bounds_beats(self):
        assert "4-6 beats" in PlotSignature.__doc__

    def test_prose_setup_fields(self):
        assert set(ProseSetupSignature.model_fields) >= {"story", "setup_json"}

    def test_prose_page_receives_previous_pages(self):
        fields = ProsePageSignature.model_fields
        assert "previous_pages" in fields
        assert "page_number" in fields
        assert "total_pages" in fields


class TestVisualSignatures:
    """Tests for the style guide and beat signatures."""

    def test_style_guide_takes_preset(self):
        assert "style_preset" in StyleGuideSignature.model_fields
        assert "style_guide_json" in StyleGuideSignature.model_fields

    def test_visual_beats_sees_prose_page(self):
        fields = VisualBeatsSignature.model_fields
        assert "prose_page" in fields
        assert "style_guide" in fields
        assert "beats_json" in fields


class TestRepairJsonSignature:
    """Tests for RepairJsonSignature."""

    def test_shows_error_and_invalid_output(self):
        fields = RepairJsonSignature.model_fields
        assert "invalid_json" in fields
        assert "error" in fields
        assert "repaired_json" in fields
