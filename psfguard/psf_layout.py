"""Layout and drawing helpers for multi-star PSF residual visualisations.

Images are Pillow ``RGBA`` images; colours are ``(r, g, b, a)`` tuples.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from PIL import Image

from psfguard.text_render import draw_text_with_bg

PANEL_SIZE = 200
PANEL_SPACING = 15
STAR_PANEL_WIDTH = PANEL_SIZE * 3 + PANEL_SPACING * 2
STAR_PANEL_HEIGHT = PANEL_SIZE + 80
MARGIN = 20
MAP_SIZE = 600

BORDER_COLOR = (200, 200, 200, 255)
MARKER_COLOR = (255, 0, 0, 255)
LABEL_FG = (255, 255, 255, 255)
LABEL_BG = (0, 0, 0, 200)
TITLE_BG = (50, 50, 50, 255)
MARKER_RADIUS = 5.0


def _to_u8(value: float) -> int:
    """Truncate toward zero and saturate into 0..255 (NaN becomes 0)."""
    if math.isnan(value):
        return 0
    return max(0, min(255, int(value)))


def heatmap_color(value: float, mode: str) -> tuple[int, int, int]:
    """Colour for a normalised value: blue-white-red for residuals, grey otherwise."""
    if mode == "residual":
        if value < 0.5:
            t = value * 2.0
            level = _to_u8(255.0 * t)
            return (level, level, 255)
        t = (value - 0.5) * 2.0
        level = _to_u8(255.0 * (1.0 - t))
        return (255, level, level)
    gray = _to_u8(255.0 * min(max(value, 0.0), 1.0))
    return (gray, gray, gray)


@dataclass(frozen=True)
class GridLayout:
    """Placement of star panels and the location map in the output image."""

    columns: int
    rows: int
    total_width: int
    total_height: int
    final_width: int
    final_height: int
    map_size: int = MAP_SIZE

    @property
    def map_x(self) -> int:
        return (self.final_width - self.map_size) // 2

    @property
    def map_y(self) -> int:
        return self.total_height + MARGIN

    def star_origin(self, index: int) -> tuple[int, int]:
        """Top-left corner of the panel group of the star at ``index``."""
        row, col = divmod(index, self.columns)
        return (
            MARGIN + col * (STAR_PANEL_WIDTH + PANEL_SPACING),
            MARGIN + row * (STAR_PANEL_HEIGHT + PANEL_SPACING),
        )

    def panel_origin(self, index: int, panel: int) -> tuple[int, int]:
        """Top-left corner of panel ``panel`` (0 observed, 1 fitted, 2 residual)."""
        x_offset, y_offset = self.star_origin(index)
        return x_offset + panel * (PANEL_SIZE + PANEL_SPACING), y_offset + 40


def grid_layout(num_stars: int, grid_cols: int, selection_mode: str) -> GridLayout:
    """Square-ish grid for ``num_stars`` stars; corner mode forces three columns."""
    if num_stars < 1:
        raise ValueError("at least one star is needed for a layout")
    grid_size = math.ceil(math.sqrt(num_stars))
    columns = 3 if selection_mode == "corners" and grid_cols != 3 else grid_size
    rows = -(-num_stars // columns)

    total_width = columns * STAR_PANEL_WIDTH + (columns - 1) * PANEL_SPACING + 2 * MARGIN
    total_height = rows * STAR_PANEL_HEIGHT + (rows - 1) * PANEL_SPACING + 2 * MARGIN
    return GridLayout(
        columns=columns,
        rows=rows,
        total_width=total_width,
        total_height=total_height,
        final_width=max(total_width, MAP_SIZE + 80),
        final_height=total_height + MAP_SIZE + 80,
    )


def minimap_scale(width: int, height: int, map_size: int) -> int:
    """Integer subsampling step that fits a ``width`` x ``height`` image in ``map_size``."""
    if width < 1 or height < 1 or map_size < 1:
        raise ValueError("image and map dimensions must be positive")
    return math.ceil(max(width, height) / map_size)


def default_output_path(fits_path: str) -> str:
    """``<name>_psf_multi.png`` next to the FITS file, dropping .fits/.fit suffixes."""
    base = str(fits_path)
    for suffix in (".fits", ".fit"):
        while base.endswith(suffix):
            base = base[: -len(suffix)]
    return f"{base}_psf_multi.png"


def _draw_hollow_rect(img: Image.Image, x: int, y: int, width: int, height: int,
                      color) -> None:
    img_width, img_height = img.size
    pixels = img.load()
    right, bottom = x + width - 1, y + height - 1

    def put(px: int, py: int) -> None:
        if 0 <= px < img_width and 0 <= py < img_height:
            pixels[px, py] = color

    for px in range(x, right + 1):
        put(px, y)
        put(px, bottom)
    for py in range(y, bottom + 1):
        put(x, py)
        put(right, py)


def draw_panel(img: Image.Image, data, x: int, y: int, panel_size: int, min_val: float,
               value_range: float, mode: str) -> None:
    """Draw a square grid of values scaled up to ``panel_size`` with a light border."""
    values = np.asarray(data, dtype=np.float64)
    if values.ndim != 2 or values.shape[0] == 0:
        raise ValueError("panel data must be a non-empty 2-D grid")
    scale = panel_size // values.shape[0]
    img_width, img_height = img.size
    pixels = img.load()

    for i, row in enumerate(values.tolist()):
        for j, value in enumerate(row):
            normalized = (value - min_val) / value_range if value_range > 0.0 else 0.5
            r, g, b = heatmap_color(normalized, mode)
            color = (r, g, b, 255)
            for dy in range(scale):
                py = y + i * scale + dy
                if not 0 <= py < img_height:
                    continue
                for dx in range(scale):
                    px = x + j * scale + dx
                    if 0 <= px < img_width:
                        pixels[px, py] = color

    _draw_hollow_rect(img, x - 1, y - 1, panel_size + 2, panel_size + 2, BORDER_COLOR)


def draw_location_map(img: Image.Image, stretched, width: int, height: int, positions,
                      map_x: int, map_y: int, map_size: int) -> tuple[int, int]:
    """Draw a subsampled preview with numbered star markers; return its size."""
    scale = minimap_scale(width, height, map_size)
    map_width = width // scale
    map_height = height // scale

    source = np.asarray(stretched).reshape(height, width)
    sampled = source[: map_height * scale: scale, : map_width * scale: scale]
    gray = (sampled.astype(np.uint32) >> 8).astype(np.uint8)
    rgba = np.empty((map_height, map_width, 4), dtype=np.uint8)
    rgba[..., :3] = gray[..., None]
    rgba[..., 3] = 255
    if map_width and map_height:
        img.paste(Image.fromarray(rgba, "RGBA"), (map_x, map_y))

    _draw_hollow_rect(img, map_x - 1, map_y - 1, map_width + 2, map_height + 2, BORDER_COLOR)

    img_width, img_height = img.size
    pixels = img.load()
    for index, (star_x, star_y) in enumerate(positions):
        map_star_x = int(star_x / scale)
        map_star_y = int(star_y / scale)
        for angle in range(360):
            rad = math.radians(angle)
            cx = map_x + map_star_x + int(MARKER_RADIUS * math.cos(rad))
            cy = map_y + map_star_y + int(MARKER_RADIUS * math.sin(rad))
            if 0 <= cx < img_width and 0 <= cy < img_height:
                pixels[cx, cy] = MARKER_COLOR
        draw_text_with_bg(img, map_x + map_star_x + 8, map_y + map_star_y - 12,
                          str(index + 1), LABEL_FG, LABEL_BG, 2)

    draw_text_with_bg(img, map_x, map_y - 25, "STAR LOCATIONS", LABEL_FG, TITLE_BG, 2)
    return map_width, map_height