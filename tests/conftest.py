from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from mapgen.terrain import TYPE_LAND, TYPE_WATER, TerrainGrid


def encode_png(pixels):
    buf = BytesIO()
    Image.fromarray(np.asarray(pixels, dtype=np.uint8)).save(buf, "PNG")
    return buf.getvalue()


def rgba(width, height, blue=200, alpha=255):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, 0] = 120
    pixels[:, :, 1] = 90
    pixels[:, :, 2] = blue
    pixels[:, :, 3] = alpha
    return pixels


@pytest.fixture
def make_png():
    return encode_png


@pytest.fixture
def make_pixels():
    return rgba


@pytest.fixture
def make_grid():
    """Build a grid from a list of rows where '#' is land and '.' is water."""

    def _make(rows, land_mag=10.0):
        t_type = np.array([[TYPE_LAND if c == "#" else TYPE_WATER for c in row] for row in rows],
                          dtype=np.uint8)
        t_mag = np.where(t_type == TYPE_LAND, land_mag, 0.0)
        return TerrainGrid(t_type, t_mag)

    return _make


@pytest.fixture
def random_map_png():
    """Blobby random terrain with some single pixel noise."""

    def _make(seed, width=48, height=40):
        rng = np.random.default_rng(seed)
        coarse = rng.random((height // 8 + 1, width // 8 + 1)) > 0.5
        land = np.kron(coarse, np.ones((8, 8), dtype=bool))[:height, :width]
        land ^= rng.random((height, width)) > 0.97

        pixels = rgba(width, height)
        pixels[:, :, 2] = rng.integers(120, 220, size=(height, width))
        pixels[:, :, 2][pixels[:, :, 2] == 106] = 107
        pixels[:, :, 3] = np.where(land, 255, 0)
        return encode_png(pixels)

    return _make
