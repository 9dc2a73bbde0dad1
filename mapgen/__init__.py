"""
OpenFront map generator - converts hand-authored PNG terrain maps into the
packed binary terrain files, WebP thumbnails and manifests used by the game.
"""

from .errors import MapGenerationError, DecodeError, DimensionError, EncodeError
from .generator import MapInfo, MapResult, generate_map

__version__ = "0.1.0"
