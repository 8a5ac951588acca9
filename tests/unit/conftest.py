"""Pytest fixtures for pipeline unit tests."""

import pytest

from picturebook.core.artifact_store import ArtifactStore

from tests.unit.factories import FakeCapabilities, make_brief, make_plot, make_story, make_style_guide


@pytest.fixture
def brief():
    """An eight-page brief."""
    return make_brief()


@pytest.fixture
def plot():
    return make_plot()


@pytest.fixture
def story():
    """An eight-page story with plot."""
    return make_story()


@pytest.fixture
def style_guide():
    return make_style_guide()


@pytest.fixture
def fake_caps():
    """Capabilities that succeed and record their calls."""
    return FakeCapabilities()


@pytest.fixture
def story_folder(tmp_path):
    """An empty story folder."""
    folder = tmp_path / "20241126-143052-the-brave-little-hedgehog-26-Nov-2024"
    folder.mkdir()
    return folder


@pytest.fixture
def store(story_folder):
    return ArtifactStore(story_folder)
