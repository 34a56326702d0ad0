"""Shared fixtures for the ADEXP decoder tests."""

from pathlib import Path

import pytest

from analyzer import Decoder
from parser import default_registry

RESOURCES = Path(__file__).parent / "resources"


@pytest.fixture
def resources():
    """Directory holding sample ADEXP messages."""
    return RESOURCES


@pytest.fixture
def sample_text():
    """Flight plan with every managed token kind."""
    return (RESOURCES / "adexp.txt").read_text()


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def decoder(registry):
    """Sequential strict decoder on the built-in registry."""
    return Decoder(registry)
