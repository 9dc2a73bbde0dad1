import logging
import math
from io import BytesIO

from PIL import Image

from .errors import EncodeError
from .terrain import TYPE_WATER

logger = logging.getLogger(__name__)

THUMBNAIL_SCALE = 0.5
WEBP_QUALITY = 45


def _channel(value):
    # Truncate toward zero, then clamp to a byte
    return min(max(int(value), 0), 255)


def thumbnail_color(t_type, t_mag, t_shore):
    if t_type == TYPE_WATER:
        if t_shore:
            return (100, 143, 255, 0)

        water_adj = 11 - min(t_mag / 2, 10) - 10
        return (
            _channel(70 + water_adj),
            _channel(132 + water_adj),
            _channel(180 + water_adj),
            0,
        )

    # Land
    if t_shore:
        return (204, 203, 158, 255)

    if t_mag < 10:
        # Plains
        adj = 220 - 2 * t_mag
        return (190, _channel(adj), 138, 255)
    elif t_mag < 20:
        # Highlands
        adj = 2 * t_mag
        return (_channel(200 + adj), _channel(183 + adj), _channel(138 + adj), 255)
    else:
        # Mountains
        adj = math.floor(230 + t_mag / 2)
        return (_channel(adj), _channel(adj), _channel(adj), 255)


def create_thumbnail(grid, quality=THUMBNAIL_SCALE):
    logger.info("Creating thumbnail")
    src_w, src_h = grid.width, grid.height
    target_w = int(max(1, math.floor(src_w * quality)))
    target_h = int(max(1, math.floor(src_h * quality)))

    img = Image.new("RGBA", (target_w, target_h))
    pixels = img.load()

    for x in range(target_w):
        src_x = int(min(math.floor(x / quality), src_w - 1))
        for y in range(target_h):
            src_y = int(min(math.floor(y / quality), src_h - 1))
            pixels[x, y] = thumbnail_color(
                grid.type[src_y, src_x],
                float(grid.magnitude[src_y, src_x]),
                grid.shoreline[src_y, src_x],
            )

    return img


def encode_webp(img, quality=WEBP_QUALITY):
    expected = img.size[0] * img.size[1] * 4
    if img.mode != "RGBA" or len(img.tobytes()) != expected:
        raise EncodeError(f"invalid thumbnail data: expected {expected} RGBA bytes")

    buf = BytesIO()
    try:
        img.save(buf, "WEBP", quality=quality)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"failed to encode WebP: {exc}") from exc
    return buf.getvalue()
