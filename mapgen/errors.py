class MapGenerationError(Exception):
    """Base class for failures while generating a single map."""


class DecodeError(MapGenerationError):
    """Input bytes could not be decoded as a PNG image."""


class DimensionError(MapGenerationError):
    """Image is too small to survive truncation to a multiple of 4."""


class EncodeError(MapGenerationError):
    """The thumbnail could not be encoded."""
