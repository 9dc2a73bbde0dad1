import copy

LEVELS = ("map", "map4x", "map16x")


def map_metadata(info):
    return {
        "width": info.width,
        "height": info.height,
        "num_land_tiles": info.num_land_tiles,
    }


def enrich_manifest(manifest, result):
    """Return a copy of ``manifest`` with the size and land count of every level."""
    enriched = copy.deepcopy(manifest) if manifest else {}
    for level in LEVELS:
        enriched[level] = map_metadata(getattr(result, level))
    return enriched


def check_map_data(meta, data):
    width, height = meta["width"], meta["height"]
    if len(data) != width * height:
        raise ValueError(f"Invalid data: buffer size {len(data)} incorrect for {width}x{height} terrain")
