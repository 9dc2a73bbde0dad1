import logging
from collections import namedtuple

from .downsample import create_mini_map
from .packing import pack_terrain
from .terrain import classify_pixels, decode_png
from .thumbnail import THUMBNAIL_SCALE, create_thumbnail, encode_webp
from .water import process_water, remove_small_islands

logger = logging.getLogger(__name__)

MapInfo = namedtuple("MapInfo", ["data", "width", "height", "num_land_tiles"])
MapResult = namedtuple("MapResult", ["map", "map4x", "map16x", "thumbnail"])


def build_terrain(image_buffer, remove_small, name="map"):
    """
    Decode and analyse a map, returning the full, half and quarter
    resolution grids.
    """
    # 1. Load Data
    pixels = decode_png(image_buffer)
    height, width = pixels.shape[:2]
    logger.info("Processing Map: %s, dimensions: %dx%d", name, width, height)

    # 2. Initialize Terrain
    terrain = classify_pixels(pixels)

    # 3. Remove Small Islands
    remove_small_islands(terrain, remove_small)

    # 4. Process Water (Identify Oceans, Remove Small Lakes, Shorelines, Distances)
    process_water(terrain, remove_small)

    # 5. Create Downscaled Maps
    terrain4x = create_mini_map(terrain)
    terrain16x = create_mini_map(terrain4x)
    return terrain, terrain4x, terrain16x


def generate_map(name, image_buffer, remove_small):
    terrain, terrain4x, terrain16x = build_terrain(image_buffer, remove_small, name)

    # 6. Thumbnail from the half resolution map
    thumb = create_thumbnail(terrain4x, THUMBNAIL_SCALE)
    webp = encode_webp(thumb)

    # 7. Pack Data
    map_data, map_land = pack_terrain(terrain)
    map4x_data, map4x_land = pack_terrain(terrain4x)
    map16x_data, map16x_land = pack_terrain(terrain16x)

    return MapResult(
        map=MapInfo(map_data, terrain.width, terrain.height, map_land),
        map4x=MapInfo(map4x_data, terrain4x.width, terrain4x.height, map4x_land),
        map16x=MapInfo(map16x_data, terrain16x.width, terrain16x.height, map16x_land),
        thumbnail=webp,
    )
