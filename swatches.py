"""
Swatch preview images for assigned colors.
"""

from collections.abc import Mapping
from typing import Optional, Sequence, Union

from PIL import Image, ImageDraw

from color_space import hex_to_lab

SWATCH_SIZE = 80
PADDING = 10
TEXT_HEIGHT = 25
MAX_COLUMNS = 6
BACKGROUND = (240, 240, 240)


def text_color_for_background(L: float) -> tuple:
    """Return black or white text color based on background lightness."""
    return (0, 0, 0) if L > 50 else (255, 255, 255)


def render_swatches(colors: Union[Mapping, Sequence[str]],
                    output_path: Optional[str] = None,
                    columns: int = MAX_COLUMNS) -> Image.Image:
    """
    Draw one labelled swatch per color.

    Args:
        colors: Mapping of label -> '#RRGGBB', or a plain list of colors
            (labelled by position)
        output_path: Where to save the PNG; None only returns the image
        columns: Swatches per row

    Returns:
        The rendered image
    """
    if isinstance(colors, Mapping):
        entries = [(str(label), color) for label, color in colors.items()]
    else:
        entries = [(str(i), color) for i, color in enumerate(colors)]

    cols = max(1, min(len(entries), columns))
    rows = (len(entries) + cols - 1) // cols

    img_width = cols * (SWATCH_SIZE + PADDING) + PADDING
    img_height = rows * (SWATCH_SIZE + TEXT_HEIGHT + PADDING) + PADDING

    img = Image.new('RGB', (img_width, img_height), BACKGROUND)
    draw = ImageDraw.Draw(img)

    for i, (label, color) in enumerate(entries):
        row = i // cols
        col = i % cols

        x = PADDING + col * (SWATCH_SIZE + PADDING)
        y = PADDING + row * (SWATCH_SIZE + TEXT_HEIGHT + PADDING)

        draw.rectangle([x, y, x + SWATCH_SIZE, y + SWATCH_SIZE], fill=color.upper())

        # Hex code inside the swatch, label centered underneath
        lightness = float(hex_to_lab(color)[0])
        draw.text((x + 4, y + 4), color.upper(), fill=text_color_for_background(lightness))

        bbox = draw.textbbox((0, 0), label)
        text_width = bbox[2] - bbox[0]
        text_x = x + (SWATCH_SIZE - text_width) // 2
        draw.text((text_x, y + SWATCH_SIZE + 4), label, fill=(0, 0, 0))

    if output_path is not None:
        img.save(output_path)

    return img
