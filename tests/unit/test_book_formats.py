"""Unit tests for print formats and process configuration."""

from pathlib import Path

import pytest

from picturebook.config import BOOK_FORMATS, PipelineConfig, get_aspect_ratio, get_book_format


class TestBookFormats:
    """Tests for format lookup and aspect ratio mapping."""

    def test_all_formats_have_bleed(self):
        """Bleed adds 0.125in (37.5px at 300dpi) on each side."""
        for book_format in BOOK_FORMATS.values():
            assert book_format.bleed_width - book_format.trim_width == 75
            assert book_format.bleed_height - book_format.trim_height == 75

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown book format"):
            get_book_format("a4")

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("square-small", "1:1"),
            ("square-large", "1:1"),
            ("landscape", "4:3"),
            ("portrait-small", "3:4"),
            ("portrait-large", "3:4"),
        ],
    )
    def test_aspect_ratio(self, key, expected):
        assert get_aspect_ratio(get_book_format(key)) == expected


class TestPipelineConfig:
    """Tests for PipelineConfig."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.default_format == "square-large"
        assert config.output_dir == Path("output")
        assert config.model_id is None

    def test_rejects_unknown_default_format(self):
        with pytest.raises(ValueError):
            PipelineConfig(default_format="poster")

    def test_rejects_zero_jobs(self):
        with pytest.raises(ValueError):
            PipelineConfig(max_concurrent_jobs=0)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PICTUREBOOK_MODEL_ID", "anthropic/claude-test")
        monkeypatch.setenv("PICTUREBOOK_FORMAT", "landscape")
        monkeypatch.setenv("PICTUREBOOK_OUTPUT_DIR", str(tmp_path))
        monkeypatch.setenv("PICTUREBOOK_JSON_LOGS", "true")
        monkeypatch.setenv("PICTUREBOOK_LOG_LEVEL", "debug")
        monkeypatch.setenv("PICTUREBOOK_MAX_JOBS", "4")

        config = PipelineConfig.from_env()

        assert config.model_id == "anthropic/claude-test"
        assert config.default_format == "landscape"
        assert config.output_dir == tmp_path
        assert config.json_logs is True
        assert config.log_level == "DEBUG"
        assert config.max_concurrent_jobs == 4

    def test_config_is_immutable(self):
        config = PipelineConfig()
        with pytest.raises(AttributeError):
            config.default_format = "landscape"
