"""Dominant color extraction and color harmony generation.

Harmonies are produced by rotating the hue of the base color in HSL space
while keeping saturation and lightness.
"""

import colorsys
import io
import math
import re

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from studio_space.services.exceptions import InvalidInputError
from studio_space.services.storage import check_pixel_count

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)

# Palette extraction works on a downsampled copy
_SAMPLE_SIZE = (200, 200)


class ColorHarmony(BaseModel):
    """A named color scheme derived from a base color."""

    name: str
    colors: list[str]
    description: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hex_to_rgb(hex_color: str) -> tuple[int, int, int] | None:
    """Parse ``#rrggbb`` (``#`` optional). Returns None when malformed."""
    match = _HEX_RE.match(hex_color.strip())
    if not match:
        return None
    return tuple(int(part, 16) for part in match.groups())


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[float, float, float]:
    """Convert 0-255 RGB to HSL.

    Returns:
        (hue in degrees [0, 360), saturation [0, 100], lightness [0, 100])
    """
    h, l, s = colorsys.rgb_to_hls(r / 255, g / 255, b / 255)
    return h * 360, s * 100, l * 100


def hsl_to_hex(h: float, s: float, l: float) -> str:  # noqa: E741
    """Convert HSL (degrees, percent, percent) to ``#rrggbb``."""
    r, g, b = colorsys.hls_to_rgb((h % 360) / 360, l / 100, s / 100)
    return rgb_to_hex(*(_round_half_up(255 * c) for c in (r, g, b)))


def generate_harmonies(base_colors: list[str]) -> list[ColorHarmony]:
    """Build the standard color schemes from the first color of a palette.

    Args:
        base_colors: Hex colors, most dominant first

    Returns:
        Complementary, analogous, triadic and split complementary schemes.
        Empty when there is no usable base color.
    """
    if not base_colors:
        return []

    primary = base_colors[0]
    rgb = hex_to_rgb(primary)
    if rgb is None:
        return []

    h, s, l = rgb_to_hsl(*rgb)  # noqa: E741

    def rotate(degrees: float) -> str:
        return hsl_to_hex((h + degrees) % 360, s, l)

    return [
        ColorHarmony(
            name="Complementary",
            colors=[primary, rotate(180)],
            description="Opposite on color wheel, high contrast",
        ),
        ColorHarmony(
            name="Analogous",
            colors=[rotate(-30), primary, rotate(30)],
            description="Adjacent colors, harmonious blend",
        ),
        ColorHarmony(
            name="Triadic",
            colors=[primary, rotate(120), rotate(240)],
            description="Evenly spaced, vibrant balance",
        ),
        ColorHarmony(
            name="Split Complementary",
            colors=[primary, rotate(150), rotate(210)],
            description="Base + two adjacent to complement",
        ),
    ]


def extract_palette(image_bytes: bytes, color_count: int = 5) -> list[str]:
    """Extract the dominant colors of an image.

    Uses median cut quantization on a downsampled copy of the image.

    Args:
        image_bytes: Encoded image (PNG, JPEG, WebP, ...)
        color_count: Number of colors to return at most

    Returns:
        Hex colors, most frequent first

    Raises:
        InvalidInputError: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            check_pixel_count(img)
            sample = img.convert("RGB")
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise InvalidInputError("Could not read image") from exc

    sample.thumbnail(_SAMPLE_SIZE)
    quantized = sample.quantize(colors=color_count, method=Image.Quantize.MEDIANCUT)
    palette = quantized.getpalette()

    colors: list[str] = []
    for _count, index in sorted(quantized.getcolors(), reverse=True):
        color = rgb_to_hex(*palette[index * 3 : index * 3 + 3])
        if color not in colors:
            colors.append(color)

    return colors[:color_count]
