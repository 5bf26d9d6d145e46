"""Canvas coordinate arithmetic for board images."""

import math

CANVAS_WIDTH = 1200
CANVAS_HEIGHT = 800
GRID_MARGIN = 50

MIN_IMAGE_WIDTH = 100
MAX_IMAGE_WIDTH = 500


def bring_to_front_z(z_indexes: list[int]) -> int:
    """Z-index that stacks an image above every other one on the board."""
    return max(z_indexes, default=0) + 1


def resize_keep_aspect(
    width: int,
    height: int,
    delta: int,
    min_width: int = MIN_IMAGE_WIDTH,
    max_width: int = MAX_IMAGE_WIDTH,
) -> tuple[int, int]:
    """Grow or shrink an image by ``delta`` pixels of width.

    The new width is clamped to ``[min_width, max_width]`` and the height
    follows the original aspect ratio.

    Returns:
        (new_width, new_height)
    """
    new_width = max(min_width, min(max_width, width + delta))
    aspect_ratio = width / height if height else 1.0
    new_height = max(1, round(new_width / aspect_ratio))
    return new_width, new_height


def normalize_rotation(degrees: int) -> int:
    """Fold a rotation into the open interval (-360, 360), keeping its sign."""
    return int(math.fmod(degrees, 360))


def offset_position(x: int, y: int, offset_x: int, offset_y: int) -> tuple[int, int]:
    """Shift a position, never leaving the canvas' top-left quadrant."""
    return max(0, x + offset_x), max(0, y + offset_y)


def grid_layout(
    count: int,
    canvas_width: int = CANVAS_WIDTH,
    canvas_height: int = CANVAS_HEIGHT,
    margin: int = GRID_MARGIN,
) -> list[tuple[int, int]]:
    """Top-left positions for ``count`` images arranged on a square-ish grid.

    Uses ``ceil(sqrt(count))`` columns and as many rows as needed, spreading
    cells evenly over the canvas.

    Returns:
        One (x, y) per image, row by row
    """
    if count <= 0:
        return []

    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    spacing_x = canvas_width / cols
    spacing_y = canvas_height / rows

    return [
        (
            int((index % cols) * spacing_x + margin),
            int((index // cols) * spacing_y + margin),
        )
        for index in range(count)
    ]
