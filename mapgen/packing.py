import logging
import struct
from collections import namedtuple

import numpy as np

from .terrain import TYPE_LAND, TYPE_WATER, TerrainGrid

logger = logging.getLogger(__name__)

# Bit 7: Land (1) / Water (0)
# Bit 6: Shoreline
# Bit 5: Ocean
# Bits 0-4: Magnitude
LAND_BIT = 0b10000000
SHORELINE_BIT = 0b01000000
OCEAN_BIT = 0b00100000
MAGNITUDE_MASK = 0b00011111
MAX_MAGNITUDE = 31

# Combined binary: seven little-endian uint32 header fields
COMBINED_VERSION = 1
HEADER_FORMAT = "<7I"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

CombinedHeader = namedtuple("CombinedHeader", [
    "version",
    "info_offset", "info_size",
    "map_offset", "map_size",
    "mini_map_offset", "mini_map_size",
])


def pack_terrain(grid):
    """
    Pack a grid into one byte per cell at offset y * width + x.

    Returns ``(data, num_land_tiles)``.
    """
    land = grid.land_mask()

    # Land: min(ceil(mag), 31)
    # Water: min(ceil(mag/2), 31)
    mag_byte = np.where(land,
                        np.minimum(np.ceil(grid.magnitude), MAX_MAGNITUDE),
                        np.minimum(np.ceil(grid.magnitude / 2), MAX_MAGNITUDE)).astype(np.uint8)

    packed = np.zeros(grid.type.shape, dtype=np.uint8)
    packed |= land.astype(np.uint8) << 7
    packed |= grid.shoreline.astype(np.uint8) << 6
    packed |= grid.ocean.astype(np.uint8) << 5
    packed |= mag_byte & MAGNITUDE_MASK

    data = packed.tobytes()
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Binary data (bits): %s", format_bits(data))
    return data, int(np.count_nonzero(land))


def unpack_terrain(data, width, height):
    """
    Decode packed bytes back into a grid.

    Magnitudes are the stored 5-bit field, so water distances come back
    halved and everything is clamped to 31.
    """
    if len(data) != width * height:
        raise ValueError(f"Invalid data: buffer size {len(data)} incorrect for {width}x{height} terrain")

    packed = np.frombuffer(data, dtype=np.uint8).reshape(height, width)
    t_type = np.where(packed & LAND_BIT, TYPE_LAND, TYPE_WATER).astype(np.uint8)
    return TerrainGrid(
        t_type,
        (packed & MAGNITUDE_MASK).astype(float),
        (packed & SHORELINE_BIT) != 0,
        (packed & OCEAN_BIT) != 0,
    )


def format_bits(data, length=8):
    return " ".join(f"{byte:08b}" for byte in bytes(data[:length]))


def create_combined_binary(info, map_data, mini_map_data):
    info_offset = HEADER_SIZE
    map_offset = info_offset + len(info)
    mini_map_offset = map_offset + len(map_data)

    header = struct.pack(HEADER_FORMAT, COMBINED_VERSION,
                         info_offset, len(info),
                         map_offset, len(map_data),
                         mini_map_offset, len(mini_map_data))
    return header + bytes(info) + bytes(map_data) + bytes(mini_map_data)


def decode_combined_binary(data):
    if len(data) < HEADER_SIZE:
        raise ValueError("data too short for header")

    header = CombinedHeader(*struct.unpack_from(HEADER_FORMAT, data, 0))

    for offset, size in ((header.info_offset, header.info_size),
                         (header.map_offset, header.map_size),
                         (header.mini_map_offset, header.mini_map_size)):
        if offset + size > len(data):
            raise ValueError("invalid offsets or sizes in header")

    info = data[header.info_offset:header.info_offset + header.info_size]
    map_data = data[header.map_offset:header.map_offset + header.map_size]
    mini_map_data = data[header.mini_map_offset:header.mini_map_offset + header.mini_map_size]
    return header, info, map_data, mini_map_data
