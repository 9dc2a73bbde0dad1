import logging
from collections import namedtuple
from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, DimensionError

logger = logging.getLogger(__name__)

# Constants
MIN_ISLAND_SIZE = 30
MIN_LAKE_SIZE = 200

# Terrain Types
TYPE_LAND = 0
TYPE_WATER = 1

# Pixel classification
WATER_ALPHA_THRESHOLD = 20
WATER_BLUE = 106
MAG_BLUE_MIN = 140
MAG_BLUE_MAX = 200

Cell = namedtuple("Cell", ["type", "shoreline", "ocean", "magnitude"])


class TerrainGrid:
    """
    Terrain as four parallel (height, width) arrays.

    numpy is (row, col), so every array is indexed [y, x]. Flattening in the
    default row-major order gives the y * width + x layout of the packed
    files.
    """

    def __init__(self, t_type, t_mag, t_shore=None, t_ocean=None):
        self.type = np.asarray(t_type, dtype=np.uint8)
        self.magnitude = np.asarray(t_mag, dtype=float)
        shape = self.type.shape
        if self.magnitude.shape != shape:
            raise ValueError(f"magnitude shape {self.magnitude.shape} does not match type shape {shape}")

        self.shoreline = np.zeros(shape, dtype=bool) if t_shore is None else np.asarray(t_shore, dtype=bool)
        self.ocean = np.zeros(shape, dtype=bool) if t_ocean is None else np.asarray(t_ocean, dtype=bool)

    @property
    def height(self):
        return self.type.shape[0]

    @property
    def width(self):
        return self.type.shape[1]

    def land_mask(self):
        return self.type == TYPE_LAND

    def water_mask(self):
        return self.type == TYPE_WATER

    def cell(self, x, y):
        return Cell(
            int(self.type[y, x]),
            bool(self.shoreline[y, x]),
            bool(self.ocean[y, x]),
            float(self.magnitude[y, x]),
        )

    def copy(self):
        return TerrainGrid(self.type.copy(), self.magnitude.copy(),
                           self.shoreline.copy(), self.ocean.copy())

    def __repr__(self):
        return f"TerrainGrid({self.width}x{self.height})"


def decode_png(image_buffer):
    """
    Decode PNG bytes to an (H, W, 4) uint8 RGBA array, cropped so both
    dimensions are multiples of 4.

    16-bit samples are reduced to their high byte.
    """
    try:
        img = Image.open(BytesIO(image_buffer))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"failed to decode PNG: {exc}") from exc

    if img.format != "PNG":
        raise DecodeError(f"failed to decode PNG: got {img.format} image")

    if img.mode in ("I;16", "I;16B", "I;16L", "I"):
        # 16-bit greyscale: Pillow would clip on convert, take the high byte instead
        grey = (np.array(img).astype(np.uint32) >> 8).astype(np.uint8)
        img = Image.fromarray(grey)

    img = img.convert("RGBA")
    width, height = img.size

    # Ensure width and height are multiples of 4 for the mini map downscaling
    width -= width % 4
    height -= height % 4
    if width == 0 or height == 0:
        raise DimensionError(f"image {img.size[0]}x{img.size[1]} needs at least 4 pixels on each side")

    img = img.crop((0, 0, width, height))
    return np.array(img)


def classify_pixels(pixels):
    # Only blue and alpha carry signal
    b = pixels[:, :, 2]
    a = pixels[:, :, 3]

    # Alpha < 20 or Blue == 106 -> Water
    water = (a < WATER_ALPHA_THRESHOLD) | (b == WATER_BLUE)
    t_type = np.where(water, TYPE_WATER, TYPE_LAND).astype(np.uint8)

    # Land magnitude: (clamp(blue, 140, 200) - 140) / 2, giving 0-30
    mag = (np.clip(b.astype(float), MAG_BLUE_MIN, MAG_BLUE_MAX) - MAG_BLUE_MIN) / 2.0
    t_mag = np.where(water, 0.0, mag)

    return TerrainGrid(t_type, t_mag)
