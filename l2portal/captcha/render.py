"""Render captcha text to a noisy PNG (Pillow), returned as a data URI."""

import base64
import io
import random
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

DEFAULT_WIDTH = 150
DEFAULT_HEIGHT = 50
DEFAULT_BACKGROUND = "#f0f0f0"
DEFAULT_NOISE = 2
_FONT_SIZE = 30


def _random_color(rng: random.Random, low: int = 30, high: int = 160) -> Tuple[int, int, int]:
    """Dark enough to read against the light background."""
    return (rng.randint(low, high), rng.randint(low, high), rng.randint(low, high))


def _glyph(char: str, font: ImageFont.ImageFont, color: Tuple[int, int, int], angle: float) -> Image.Image:
    box = int(_FONT_SIZE * 1.4)
    tile = Image.new("RGBA", (box, box), (0, 0, 0, 0))
    ImageDraw.Draw(tile).text((box // 2, box // 2), char, font=font, fill=color + (255,), anchor="mm")
    return tile.rotate(angle, resample=Image.Resampling.BICUBIC, expand=False)


def render_png(
    text: str,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    noise: int = DEFAULT_NOISE,
    background: str = DEFAULT_BACKGROUND,
    color: bool = True,
    rng: Optional[random.Random] = None,
) -> bytes:
    """Draw text with per-glyph color, rotation and jitter plus `noise` crossing lines. Returns PNG bytes."""
    rng = rng or random.Random()
    font = ImageFont.load_default(size=_FONT_SIZE)
    image = Image.new("RGB", (width, height), background)
    draw = ImageDraw.Draw(image)

    slot = width / (len(text) + 1)
    for i, char in enumerate(text):
        fill = _random_color(rng) if color else (40, 40, 40)
        glyph = _glyph(char, font, fill, rng.uniform(-30, 30))
        cx = int(slot * (i + 1) + rng.uniform(-slot / 6, slot / 6))
        cy = int(height / 2 + rng.uniform(-height / 8, height / 8))
        image.paste(glyph, (cx - glyph.width // 2, cy - glyph.height // 2), glyph)

    for _ in range(noise):
        start = (rng.randint(0, width // 4), rng.randint(0, height))
        end = (rng.randint(3 * width // 4, width), rng.randint(0, height))
        draw.line([start, end], fill=_random_color(rng) if color else (90, 90, 90), width=2)

    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def to_data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
