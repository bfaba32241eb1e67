"""Shared fixtures - synthetic RGBA images."""
import numpy as np
import pytest

from helpers import checkerboard_rgba, solid_rgba


@pytest.fixture
def gray_image():
    """Scenario A: 64x64 solid mid-gray."""
    return solid_rgba(64, 64)


@pytest.fixture
def checker_image():
    """Scenario B: 64x64 checkerboard of 2x2 black/white blocks."""
    return checkerboard_rgba(64, 64)


@pytest.fixture
def noisy_image():
    """Seeded random RGBA image with a varying alpha channel."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(48, 80, 4), dtype=np.uint8)
