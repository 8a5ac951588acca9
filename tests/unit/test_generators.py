"""Unit tests for the DSPy generation modules with the LM call mocked out."""

import json

from unittest.mock import MagicMock

from picturebook.core.modules import (
    PlotGenerator,
    ProsePageWriter,
    RequirementsExtractor,
    StyleGuideGenerator,
    VisualDirector,
)
from picturebook.core.types import BriefDraft

from tests.unit.factories import (
    make_brief,
    make_plot,
    make_prose_page,
    make_prose_setup,
    make_story,
    make_style_guide,
)


def _prediction(**fields):
    return MagicMock(**fields)


class TestRequirementsExtractor:
    """Tests for RequirementsExtractor."""

    def test_extracts_partial_draft(self):
        extractor = RequirementsExtractor()
        extractor.extract = MagicMock(return_value=_prediction(brief_json='{"title": "Moon Soup"}'))

        draft = extractor(raw_text="a book called Moon Soup")

        assert draft.title == "Moon Soup"
        assert draft.setting is None

    def test_merges_into_current_draft(self):
        """A follow-up answer fills gaps without erasing earlier fields."""
        extractor = RequirementsExtractor()
        extractor.extract = MagicMock(return_value=_prediction(brief_json='{"setting": "a snowy mountain"}'))

        draft = extractor(raw_text="it happens on a mountain", current=BriefDraft(title="Moon Soup"))

        assert (draft.title, draft.setting) == ("Moon Soup", "a snowy mountain")
        current_brief = json.loads(extractor.extract.call_args.kwargs["current_brief"])
        assert current_brief == {"title": "Moon Soup"}


class TestPlotGenerator:
    """Tests for PlotGenerator."""

    def test_parses_plot(self):
        generator = PlotGenerator()
        generator.generate = MagicMock(return_value=_prediction(plot_json=make_plot().model_dump_json(by_alias=True)))

        plot = generator(brief=make_brief())

        assert plot == make_plot()
        sent = json.loads(generator.generate.call_args.kwargs["brief"])
        assert sent["storyArc"] == "a shy hedgehog finds courage"


class TestProsePageWriter:
    """Tests for ProsePageWriter."""

    def test_passes_previous_pages(self):
        writer = ProsePageWriter()
        page_json = make_prose_page(3).model_dump_json(by_alias=True)
        writer.generate = MagicMock(return_value=_prediction(page_json=page_json))

        page = writer(
            story=make_story(),
            prose_setup=make_prose_setup(),
            page_number=3,
            previous_pages=(make_prose_page(1), make_prose_page(2)),
        )

        assert page == make_prose_page(3)
        kwargs = writer.generate.call_args.kwargs
        assert kwargs["page_number"] == 3
        assert kwargs["total_pages"] == 8
        assert len(json.loads(kwargs["previous_pages"])) == 2


class TestStyleGuideGenerator:
    """Tests for StyleGuideGenerator."""

    def test_without_preset(self):
        generator = StyleGuideGenerator()
        generator.generate = MagicMock(
            return_value=_prediction(style_guide_json=make_style_guide().model_dump_json(exclude_none=True))
        )

        guide = generator(story=make_story())

        assert guide == make_style_guide()
        assert generator.generate.call_args.kwargs["style_preset"] == "none"

    def test_preset_art_direction_is_forced(self):
        story = make_story().model_copy(update={"style_preset": "watercolor_ink"})
        generator = StyleGuideGenerator()
        generator.generate = MagicMock(
            return_value=_prediction(style_guide_json=make_style_guide().model_dump_json(exclude_none=True))
        )

        guide = generator(story=story)

        assert guide.art_direction != make_style_guide().art_direction
        assert guide.setting == make_style_guide().setting
        assert generator.generate.call_args.kwargs["style_preset"] != "none"


class TestVisualDirector:
    """Tests for VisualDirector."""

    def test_page_number_comes_from_caller(self):
        beats = {
            "beats": [
                {
                    "order": 1,
                    "purpose": "setup",
                    "summary": "Hazel peeks out",
                    "emotion": "nervous",
                    "shot": {"size": "wide", "angle": "eye_level"},
                }
            ]
        }
        director = VisualDirector()
        director.generate = MagicMock(return_value=_prediction(beats_json=json.dumps(beats)))

        page = director(
            story=make_story(),
            style_guide=make_style_guide(),
            page_number=4,
            prose_page=make_prose_page(4),
        )

        assert page.page_number == 4
        assert page.beats[0].summary == "Hazel peeks out"
