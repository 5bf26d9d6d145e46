"""Color tools: harmonies for a base color and palettes extracted from images."""

import asyncio

from fastapi import APIRouter, File, Form, Query, UploadFile

from studio_space.api.routes.images import read_upload
from studio_space.services.color_harmony import (
    ColorHarmony,
    extract_palette,
    generate_harmonies,
    hex_to_rgb,
    rgb_to_hex,
)
from studio_space.services.exceptions import InvalidInputError

router = APIRouter(prefix="/api/colors", tags=["colors"])


@router.get("/harmonies")
async def color_harmonies(color: str = Query(..., max_length=7)) -> dict:
    """Complementary, analogous, triadic and split complementary schemes.

    Args:
        color: Base color as ``#rrggbb`` (``#`` optional)

    Raises:
        InvalidInputError: If the color is not a hex triplet
    """
    rgb = hex_to_rgb(color)
    if rgb is None:
        raise InvalidInputError("color must be a hex color like #ff8800")

    base = rgb_to_hex(*rgb)
    harmonies: list[ColorHarmony] = generate_harmonies([base])
    return {"color": base, "harmonies": harmonies}


@router.post("/palette")
async def image_palette(
    image: UploadFile | None = File(None),
    count: int = Form(5, ge=2, le=10),
) -> dict:
    """Extract the dominant colors of an uploaded image and their harmonies."""
    data = await read_upload(image)
    colors = await asyncio.to_thread(extract_palette, data, count)
    return {"colors": colors, "harmonies": generate_harmonies(colors)}
