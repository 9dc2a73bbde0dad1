import logging
from collections import namedtuple

import numpy as np
from scipy.ndimage import binary_dilation, label

from .terrain import MIN_ISLAND_SIZE, MIN_LAKE_SIZE, TYPE_LAND, TYPE_WATER

logger = logging.getLogger(__name__)

# Structure for 4-connectivity
STRUCT_4 = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=bool)

WaterReport = namedtuple("WaterReport", ["num_bodies", "ocean_size", "lakes_removed"])


def label_areas(grid, target_type):
    """
    Label the 4-connected areas of ``target_type``.

    Returns ``(labeled, labels, sizes)`` where ``labels`` are sorted by area
    size, largest first, and ``sizes`` is indexed by label (``sizes[0]`` is
    the background).
    """
    mask = grid.type == target_type
    labeled, n_components = label(mask, structure=STRUCT_4)
    sizes = np.bincount(labeled.ravel(), minlength=n_components + 1)

    labels = np.arange(1, n_components + 1)
    # Stable sort so equal sized areas keep scan order
    labels = labels[np.argsort(-sizes[labels], kind="stable")]
    return labeled, labels, sizes


def water_bodies(grid):
    return label_areas(grid, TYPE_WATER)


def remove_small_areas(grid, target_type, min_size, replace_with):
    labeled, labels, sizes = label_areas(grid, target_type)

    small_labels = labels[sizes[labels] < min_size]
    remove_mask = np.isin(labeled, small_labels)
    grid.type[remove_mask] = replace_with
    grid.magnitude[remove_mask] = 0
    return len(small_labels)


def remove_small_islands(grid, remove_small, min_size=MIN_ISLAND_SIZE):
    if not remove_small:
        return 0

    removed = remove_small_areas(grid, TYPE_LAND, min_size, replace_with=TYPE_WATER)
    logger.info("Identified and removed %d islands smaller than %d tiles", removed, min_size)
    return removed


def process_water(grid, remove_small, min_lake_size=MIN_LAKE_SIZE):
    logger.info("Processing water bodies")
    labeled, labels, sizes = water_bodies(grid)

    ocean_size = 0
    lakes_removed = 0
    if len(labels) > 0:
        # Largest is Ocean
        largest_label = labels[0]
        ocean_size = int(sizes[largest_label])
        grid.ocean[labeled == largest_label] = True
        logger.info("Identified ocean with %d water tiles", ocean_size)

        # Remove small lakes
        if remove_small:
            lakes = labels[1:]
            small_labels = lakes[sizes[lakes] < min_lake_size]
            remove_mask = np.isin(labeled, small_labels)
            grid.type[remove_mask] = TYPE_LAND
            grid.magnitude[remove_mask] = 0
            lakes_removed = len(small_labels)
            logger.info("Identified and removed %d bodies of water smaller than %d tiles",
                        lakes_removed, min_lake_size)
    else:
        logger.info("No water bodies found in the map")

    shoreline_waters = process_shore(grid)
    max_dist = process_dist_to_land(grid, shoreline_waters)
    logger.info("Furthest water tile is %d tiles from land", max_dist)

    return WaterReport(len(labels), ocean_size, lakes_removed)


def process_shore(grid):
    """
    Recompute the shoreline flag of every cell.

    Returns the shoreline water cells as an (N, 2) array of ``(x, y)`` rows.
    """
    logger.info("Identifying shorelines")
    land_mask = grid.land_mask()
    water_mask = grid.water_mask()

    # Dilate Land -> overlap with Water is Shoreline Water.
    # border_value=0 keeps out-of-grid positions from counting as neighbours.
    shore_water = binary_dilation(land_mask, structure=STRUCT_4) & water_mask
    # Dilate Water -> overlap with Land is Shoreline Land
    shore_land = binary_dilation(water_mask, structure=STRUCT_4) & land_mask

    grid.shoreline = shore_water | shore_land

    # argwhere yields (y, x)
    return np.argwhere(shore_water)[:, ::-1]


def process_dist_to_land(grid, shoreline_waters):
    """
    Multi-source breadth-first search from the shoreline waters, writing the
    Manhattan distance to land into each reachable water cell.

    The search advances one whole distance level per iteration over a flat
    y * width + x index, which visits cells in the same order as a FIFO queue.
    Land magnitudes are left untouched.
    """
    logger.info("Setting Water tiles magnitude = Manhattan distance from nearest land")
    height, width = grid.height, grid.width

    water = grid.water_mask().ravel()
    mag = grid.magnitude.reshape(-1).copy()
    visited = np.zeros(width * height, dtype=bool)

    seeds = np.asarray(shoreline_waters, dtype=np.int64).reshape(-1, 2)
    frontier = np.unique(seeds[:, 1] * width + seeds[:, 0])
    visited[frontier] = True
    mag[frontier] = 0

    dist = 0
    last_row = (height - 1) * width
    while frontier.size:
        dist += 1
        xs = frontier % width
        candidates = np.concatenate((
            frontier[xs > 0] - 1,
            frontier[xs < width - 1] + 1,
            frontier[frontier >= width] - width,
            frontier[frontier < last_row] + width,
        ))
        candidates = np.unique(candidates)
        frontier = candidates[water[candidates] & ~visited[candidates]]

        visited[frontier] = True
        mag[frontier] = dist

    grid.magnitude = mag.reshape(height, width)
    return dist - 1 if dist else 0
