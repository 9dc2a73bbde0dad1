from .terrain import TYPE_WATER, TerrainGrid


def create_mini_map(grid):
    """
    Downscale a grid by 2 on each axis.

    Each 2x2 block is scanned x outer, y inner:
    (0,0), (0,1), (1,0), (1,1). A water cell always replaces the current
    pick, a land cell only replaces a land pick. So any water in the block
    makes the mini tile water (the last water scanned), and an all land block
    takes (1,1). Magnitude, shoreline and ocean travel with the chosen cell.
    """
    h, w = grid.height, grid.width
    h -= h % 2
    w -= w % 2

    t_type = grid.type[:h, :w]
    t_mag = grid.magnitude[:h, :w]
    t_shore = grid.shoreline[:h, :w]
    t_ocean = grid.ocean[:h, :w]

    # Initialize with P11 (Case: All Land -> Last one wins)
    mini = TerrainGrid(t_type[1::2, 1::2].copy(), t_mag[1::2, 1::2].copy(),
                       t_shore[1::2, 1::2].copy(), t_ocean[1::2, 1::2].copy())

    # numpy is (y, x): P00 -> [0::2, 0::2], P01 (x=0, y=1) -> [1::2, 0::2],
    # P10 (x=1, y=0) -> [0::2, 1::2], P11 -> [1::2, 1::2].
    # Apply in scan order so later water overwrites earlier water.
    for dy, dx in ((0, 0), (1, 0), (0, 1), (1, 1)):
        s_type = t_type[dy::2, dx::2]
        mask = s_type == TYPE_WATER
        _update_mini(mini, s_type, t_mag[dy::2, dx::2],
                     t_shore[dy::2, dx::2], t_ocean[dy::2, dx::2], mask)

    return mini


def _update_mini(mini, s_type, s_mag, s_shore, s_ocean, mask):
    mini.type[mask] = s_type[mask]
    mini.magnitude[mask] = s_mag[mask]
    mini.shoreline[mask] = s_shore[mask]
    mini.ocean[mask] = s_ocean[mask]
