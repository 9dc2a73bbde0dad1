import numpy as np

from mapgen.terrain import TYPE_LAND, TYPE_WATER, TerrainGrid
from mapgen.water import (
    process_dist_to_land,
    process_shore,
    process_water,
    remove_small_islands,
    water_bodies,
)


def island_grid(size, island, land_mag=12.0):
    t_type = np.full((size, size), TYPE_WATER, dtype=np.uint8)
    start = (size - island) // 2
    t_type[start:start + island, start:start + island] = TYPE_LAND
    t_mag = np.where(t_type == TYPE_LAND, land_mag, 0.0)
    return TerrainGrid(t_type, t_mag), start


def test_remove_small_islands_disabled_is_noop():
    grid, _ = island_grid(32, 5)
    before = grid.copy()
    assert remove_small_islands(grid, False) == 0
    assert (grid.type == before.type).all()
    assert (grid.magnitude == before.magnitude).all()


def test_remove_small_islands_flips_to_water():
    grid, _ = island_grid(32, 5)
    assert remove_small_islands(grid, True) == 1
    assert (grid.type == TYPE_WATER).all()
    assert (grid.magnitude == 0).all()


def test_island_at_threshold_survives(make_grid):
    # 30 cells exactly: 3 rows of 10
    rows = ["." * 16] + ["...##########..."] * 3 + ["." * 16] * 4
    grid = make_grid(rows)
    assert grid.land_mask().sum() == 30
    assert remove_small_islands(grid, True) == 0
    assert grid.land_mask().sum() == 30


def test_islands_are_four_connected(make_grid):
    # Diagonal neighbours do not join islands
    grid = make_grid([
        "#...",
        ".#..",
        "..#.",
        "...#",
    ])
    _, labels, _ = water_bodies(grid)
    assert len(labels) == 2
    assert remove_small_islands(grid, True, min_size=2) == 4
    assert (grid.type == TYPE_WATER).all()


def test_largest_body_is_ocean_and_small_lakes_fill(make_grid):
    rows = ["#" * 40 for _ in range(40)]
    grid = make_grid(rows, land_mag=4.0)
    grid.type[0:20, 0:25] = TYPE_WATER      # 500 cells
    grid.type[30:40, 30:40] = TYPE_WATER    # 100 cells
    grid.magnitude[grid.water_mask()] = 0

    report = process_water(grid, remove_small=True)

    assert report.num_bodies == 2
    assert report.ocean_size == 500
    assert report.lakes_removed == 1
    assert grid.ocean.sum() == 500
    assert grid.ocean[0:20, 0:25].all()
    assert (grid.type[30:40, 30:40] == TYPE_LAND).all()
    assert (grid.magnitude[30:40, 30:40] == 0).all()
    # The filled lake no longer has a shore
    assert not grid.shoreline[30:40, 30:40].any()
    assert grid.land_mask().sum() == 1100


def test_big_lakes_are_kept(make_grid):
    grid = make_grid(["#" * 40 for _ in range(40)])
    grid.type[0:20, 0:25] = TYPE_WATER      # 500 cells
    grid.type[24:39, 24:39] = TYPE_WATER    # 225 cells
    grid.magnitude[grid.water_mask()] = 0

    report = process_water(grid, remove_small=True)

    assert report.lakes_removed == 0
    assert (grid.type[24:39, 24:39] == TYPE_WATER).all()
    assert not grid.ocean[24:39, 24:39].any()
    # Lake centre is 7 steps from its shore
    assert grid.magnitude[31, 31] == 7


def test_small_lakes_kept_without_remove_small(make_grid):
    grid = make_grid([
        "........",
        "........",
        "########",
        "###..###",
    ])
    report = process_water(grid, remove_small=False)
    assert report.lakes_removed == 0
    assert (grid.type[3, 3:5] == TYPE_WATER).all()
    assert not grid.ocean[3, 3:5].any()
    assert grid.ocean[0:2, :].all()


def test_equal_bodies_pick_exactly_one_ocean(make_grid):
    grid = make_grid([
        "..#..",
        "..#..",
    ])
    process_water(grid, remove_small=False)
    assert grid.ocean.sum() == 4
    assert grid.ocean[:, 0:2].all() != grid.ocean[:, 3:5].all()


def test_no_water_sets_no_ocean(make_grid):
    grid = make_grid(["####", "####"])
    report = process_water(grid, remove_small=True)
    assert report == (0, 0, 0)
    assert not grid.ocean.any()
    assert not grid.shoreline.any()
    assert (grid.magnitude == 10).all()


def test_process_shore_flags_both_sides(make_grid):
    grid = make_grid([
        "##..",
        "##..",
    ])
    grid.shoreline[:] = True
    shore_waters = process_shore(grid)

    assert grid.shoreline.tolist() == [
        [False, True, True, False],
        [False, True, True, False],
    ]
    # (x, y) rows
    assert sorted(map(tuple, shore_waters.tolist())) == [(2, 0), (2, 1)]


def test_distance_grows_away_from_land(make_grid):
    grid = make_grid(["#......."] * 4, land_mag=7.0)
    process_dist_to_land(grid, process_shore(grid))
    assert grid.magnitude[:, 0].tolist() == [7.0] * 4
    for y in range(4):
        assert grid.magnitude[y, 1:].tolist() == [0, 1, 2, 3, 4, 5, 6]


def test_distance_without_seeds_leaves_water(make_grid):
    grid = make_grid(["....", "...."])
    grid.magnitude[:] = 0
    assert process_dist_to_land(grid, np.empty((0, 2), dtype=int)) == 0
    assert (grid.magnitude == 0).all()
