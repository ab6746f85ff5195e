import numpy as np
import pytest


@pytest.fixture
def ramp_image():
    """64x64 image whose intensity grows by 2 per column (gradient pointing at 0 degrees)."""
    return np.tile(np.arange(64, dtype=np.float32) * 2, (64, 1))


@pytest.fixture
def random_image():
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(256, 128), dtype=np.uint8)
