"""Unit tests for color conversion, harmony generation and palette extraction."""

import io

import pytest
from PIL import Image

from studio_space.services.color_harmony import (
    extract_palette,
    generate_harmonies,
    hex_to_rgb,
    hsl_to_hex,
    rgb_to_hex,
    rgb_to_hsl,
)
from studio_space.services.exceptions import InvalidInputError


@pytest.mark.unit
class TestConversions:
    """Unit tests for hex/RGB/HSL conversions."""

    def test_hex_to_rgb_parses_with_and_without_hash(self) -> None:
        assert hex_to_rgb("#ff8800") == (255, 136, 0)
        assert hex_to_rgb("FF8800") == (255, 136, 0)

    @pytest.mark.parametrize("value", ["", "#fff", "#gggggg", "ff88001", "red"])
    def test_hex_to_rgb_rejects_malformed(self, value: str) -> None:
        assert hex_to_rgb(value) is None

    def test_rgb_to_hex_is_lowercase_and_padded(self) -> None:
        assert rgb_to_hex(10, 0, 255) == "#0a00ff"

    def test_rgb_to_hsl_pure_red(self) -> None:
        assert rgb_to_hsl(255, 0, 0) == (0.0, 100.0, 50.0)

    def test_rgb_to_hsl_white_has_no_saturation(self) -> None:
        h, s, l = rgb_to_hsl(255, 255, 255)  # noqa: E741
        assert (h, s, l) == (0.0, 0.0, 100.0)

    def test_hsl_to_hex_rounds_half_up(self) -> None:
        """50% grey is 127.5 per channel, which rounds to 128 (0x80)."""
        assert hsl_to_hex(0, 0, 50) == "#808080"

    def test_hsl_to_hex_primary_hues(self) -> None:
        assert hsl_to_hex(120, 100, 50) == "#00ff00"
        assert hsl_to_hex(240, 100, 50) == "#0000ff"


@pytest.mark.unit
class TestHarmonies:
    """Unit tests for generate_harmonies."""

    def test_returns_four_named_schemes(self) -> None:
        harmonies = generate_harmonies(["#ff0000"])

        assert [h.name for h in harmonies] == [
            "Complementary",
            "Analogous",
            "Triadic",
            "Split Complementary",
        ]
        assert all(h.description for h in harmonies)

    def test_complementary_is_opposite_hue(self) -> None:
        complementary = generate_harmonies(["#ff0000"])[0]
        assert complementary.colors == ["#ff0000", "#00ffff"]

    def test_triadic_spaces_hues_by_120(self) -> None:
        triadic = generate_harmonies(["#ff0000"])[2]
        assert triadic.colors == ["#ff0000", "#00ff00", "#0000ff"]

    def test_analogous_keeps_base_in_the_middle(self) -> None:
        analogous = generate_harmonies(["#336699"])[1]
        assert len(analogous.colors) == 3
        assert analogous.colors[1] == "#336699"

    def test_split_complementary_has_three_colors(self) -> None:
        split = generate_harmonies(["#336699"])[3]
        assert len(split.colors) == 3
        assert split.colors[0] == "#336699"

    def test_only_first_color_is_used(self) -> None:
        assert generate_harmonies(["#ff0000", "#123456"]) == generate_harmonies(["#ff0000"])

    def test_empty_input(self) -> None:
        assert generate_harmonies([]) == []

    def test_invalid_base_color(self) -> None:
        assert generate_harmonies(["not-a-color"]) == []


def _encode(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.mark.unit
class TestPaletteExtraction:
    """Unit tests for extract_palette."""

    def test_solid_image_yields_its_color(self) -> None:
        data = _encode(Image.new("RGB", (40, 40), (200, 40, 40)))
        assert extract_palette(data) == ["#c82828"]

    def test_most_frequent_color_first(self) -> None:
        image = Image.new("RGB", (40, 40), (200, 40, 40))
        image.paste((10, 20, 230), (0, 0, 40, 10))

        colors = extract_palette(_encode(image), color_count=2)

        assert colors == ["#c82828", "#0a14e6"]

    def test_respects_color_count(self) -> None:
        image = Image.new("RGB", (30, 30), (0, 0, 0))
        image.paste((255, 0, 0), (0, 0, 10, 30))
        image.paste((0, 255, 0), (10, 0, 20, 30))

        assert len(extract_palette(_encode(image), color_count=2)) <= 2

    def test_unreadable_bytes(self) -> None:
        with pytest.raises(InvalidInputError):
            extract_palette(b"definitely not an image")
