"""Shared fixtures for docgen tests."""

from dataclasses import dataclass

import pytest

from netbox.docgen.registry import _function_registry


@dataclass
class ExampleResource:
    """A render context shaped like the records the doc generator passes in."""
    Text: str
    MultiLineTest: str


@pytest.fixture
def example_resource():
    """The record used by the reference template."""
    return ExampleResource(
        Text="my Odly cAsed striNg",
        MultiLineTest="This text used\nmultiple lines",
    )


@pytest.fixture
def restore_registry():
    """Undo any template functions a test registers."""
    saved = dict(_function_registry)
    yield
    _function_registry.clear()
    _function_registry.update(saved)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove docgen env vars so defaults apply."""
    for var in ("DOCGEN_METADATA_DELIMITER", "METADATA_DELIMITER"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
