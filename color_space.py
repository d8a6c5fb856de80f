"""
Perceptual color space: sRGB <-> CIE LAB conversions, derived quantities,
distances and the saturation/lightness constraint applied to candidate colors.

Colors are plain NumPy arrays with [L, a, b] along the last axis.
"""

import math
import re
from dataclasses import dataclass
from typing import Iterable, Union

import numpy as np

from errors import InvalidArgumentError, OutOfGamutError


# =============================================================================
# Constants
# =============================================================================

JND = 2.3  # Just Noticeable Difference in LAB units

# D65 reference white
XN, YN, ZN = 0.95047, 1.0, 1.08883

EPSILON = 0.008856
KAPPA = 903.3

# How far (in 8-bit units) a channel may overshoot [0, 255] and still round
# back inside the device gamut.
GAMUT_TOLERANCE = 0.5

# Default constraint: drop near-gray, near-black and near-white colors
DEFAULT_MINIMAL_SATURATION = 25.0
DEFAULT_MINIMAL_LIGHTNESS = 25.0
DEFAULT_MAXIMAL_LIGHTNESS = 85.0

HEX_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')


# =============================================================================
# Color Conversion
# =============================================================================

def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert RGB array (0-255) to LAB color space."""
    rgb = np.asarray(rgb)
    shape = rgb.shape
    rgb_norm = rgb.reshape(-1, 3).astype(np.float64) / 255.0

    # Apply gamma correction
    mask = rgb_norm > 0.04045
    rgb_linear = np.where(mask, ((rgb_norm + 0.055) / 1.055) ** 2.4, rgb_norm / 12.92)

    # RGB to XYZ matrix
    r, g, b = rgb_linear[:, 0], rgb_linear[:, 1], rgb_linear[:, 2]
    x = r * 0.4124564 + g * 0.3575761 + b * 0.1804375
    y = r * 0.2126729 + g * 0.7151522 + b * 0.0721750
    z = r * 0.0193339 + g * 0.1191920 + b * 0.9503041

    x, y, z = x / XN, y / YN, z / ZN

    fx = np.where(x > EPSILON, np.cbrt(x), (KAPPA * x + 16) / 116)
    fy = np.where(y > EPSILON, np.cbrt(y), (KAPPA * y + 16) / 116)
    fz = np.where(z > EPSILON, np.cbrt(z), (KAPPA * z + 16) / 116)

    L = 116 * fy - 16
    a = 500 * (fx - fy)
    b_val = 200 * (fy - fz)

    return np.column_stack([L, a, b_val]).reshape(shape)


def _lab_to_srgb(lab: np.ndarray) -> np.ndarray:
    """LAB to gamma-encoded sRGB in 0-255, unclipped and unrounded."""
    L, a, b = lab[:, 0], lab[:, 1], lab[:, 2]

    fy = (L + 16) / 116
    fx = a / 500 + fy
    fz = fy - b / 200

    x = np.where(fx**3 > EPSILON, fx**3, (116 * fx - 16) / KAPPA)
    y = np.where(L > KAPPA * EPSILON, ((L + 16) / 116) ** 3, L / KAPPA)
    z = np.where(fz**3 > EPSILON, fz**3, (116 * fz - 16) / KAPPA)

    x = x * XN
    z = z * ZN

    r = x * 3.2404542 - y * 1.5371385 - z * 0.4985314
    g = -x * 0.9692660 + y * 1.8760108 + z * 0.0415560
    b_out = x * 0.0556434 - y * 0.2040259 + z * 1.0572252

    rgb_linear = np.column_stack([r, g, b_out])
    mask = rgb_linear > 0.0031308
    rgb = np.where(mask, 1.055 * np.power(np.clip(rgb_linear, 0, None), 1/2.4) - 0.055, 12.92 * rgb_linear)

    return rgb * 255


def in_gamut(lab: np.ndarray, tolerance: float = GAMUT_TOLERANCE) -> np.ndarray:
    """Boolean mask of LAB colors that have an 8-bit sRGB equivalent."""
    lab = np.asarray(lab, dtype=np.float64)
    rgb = _lab_to_srgb(lab.reshape(-1, 3))
    ok = np.all((rgb >= -tolerance) & (rgb <= 255 + tolerance), axis=1)
    return ok.reshape(lab.shape[:-1])


def lab_to_rgb(lab: np.ndarray, clip: bool = True) -> np.ndarray:
    """
    Convert LAB array to RGB (0-255), rounded to the nearest 8-bit value.

    Args:
        lab: Array with [L, a, b] along the last axis
        clip: Clamp out-of-gamut colors to the nearest device value. When
            False, an out-of-gamut color raises instead.

    Raises:
        OutOfGamutError: If clip is False and a color has no sRGB equivalent
    """
    lab = np.asarray(lab, dtype=np.float64)
    rgb = _lab_to_srgb(lab.reshape(-1, 3))

    if not clip:
        outside = ~np.all((rgb >= -GAMUT_TOLERANCE) & (rgb <= 255 + GAMUT_TOLERANCE), axis=1)
        if outside.any():
            first = lab.reshape(-1, 3)[np.argmax(outside)]
            raise OutOfGamutError(
                f"LAB color ({first[0]:.1f}, {first[1]:.1f}, {first[2]:.1f}) is outside the sRGB gamut"
            )

    rgb = np.clip(np.round(rgb), 0, 255).astype(np.uint8)
    return rgb.reshape(lab.shape)


def lab_to_hex(lab: np.ndarray) -> Union[str, list[str]]:
    """Convert LAB to '#RRGGBB'. A stack of colors gives a list of strings."""
    lab = np.asarray(lab, dtype=np.float64)
    rgb = lab_to_rgb(lab).reshape(-1, 3)
    hexes = [f"#{r:02X}{g:02X}{b:02X}" for r, g, b in rgb]
    if lab.ndim == 1:
        return hexes[0]
    return hexes


def hex_to_rgb(color: str) -> np.ndarray:
    """Parse '#RRGGBB' (any case) into a uint8 RGB triple."""
    if not isinstance(color, str) or not HEX_PATTERN.match(color):
        raise InvalidArgumentError(f"Not a #RRGGBB color: {color!r}")
    return np.array([int(color[i:i + 2], 16) for i in (1, 3, 5)], dtype=np.uint8)


def hex_to_lab(colors: Union[str, Iterable[str]]) -> np.ndarray:
    """Convert '#RRGGBB' (or a list of them) to LAB."""
    if isinstance(colors, str):
        return rgb_to_lab(hex_to_rgb(colors))
    rgb = np.array([hex_to_rgb(c) for c in colors], dtype=np.uint8).reshape(-1, 3)
    return rgb_to_lab(rgb)


# =============================================================================
# Color Utilities
# =============================================================================

def compute_chroma(lab: np.ndarray) -> np.ndarray:
    """Compute chroma (saturation) from LAB coordinates."""
    lab = np.asarray(lab, dtype=np.float64)
    return np.hypot(lab[..., 1], lab[..., 2])


def compute_hue(lab: np.ndarray) -> np.ndarray:
    """Compute hue angle (0-360 degrees) from LAB coordinates."""
    lab = np.asarray(lab, dtype=np.float64)
    return np.degrees(np.arctan2(lab[..., 2], lab[..., 1])) % 360


def lch_to_lab(L: np.ndarray, chroma: np.ndarray, hue: np.ndarray) -> np.ndarray:
    """Build LAB colors from lightness, chroma and hue (degrees)."""
    radians = np.radians(hue)
    return np.stack([L, chroma * np.cos(radians), chroma * np.sin(radians)], axis=-1)


def perceptual_distance(lab1: np.ndarray, lab2: np.ndarray) -> np.ndarray:
    """
    Euclidean distance in LAB (CIE76 delta E).

    A good-enough approximation of perceived difference; broadcasts over
    leading axes.
    """
    diff = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    return np.linalg.norm(diff, axis=-1)


# =============================================================================
# Constraints
# =============================================================================

@dataclass(frozen=True)
class ColorConstraint:
    """Saturation/lightness bounds every candidate color must satisfy."""
    minimal_saturation: float = DEFAULT_MINIMAL_SATURATION
    minimal_lightness: float = DEFAULT_MINIMAL_LIGHTNESS
    maximal_lightness: float = DEFAULT_MAXIMAL_LIGHTNESS

    def validate(self) -> 'ColorConstraint':
        """
        Check the bounds are usable.

        Raises:
            InvalidArgumentError: If a bound is non-finite, negative saturation,
                lightness outside [0, 100], or minimal >= maximal lightness
        """
        values = (self.minimal_saturation, self.minimal_lightness, self.maximal_lightness)
        if not all(isinstance(v, (int, float, np.number)) and math.isfinite(v) for v in values):
            raise InvalidArgumentError(f"Constraint bounds must be finite numbers, got {values}")
        if self.minimal_saturation < 0:
            raise InvalidArgumentError(
                f"minimal_saturation must be >= 0, got {self.minimal_saturation}"
            )
        if not 0 <= self.minimal_lightness <= 100 or not 0 <= self.maximal_lightness <= 100:
            raise InvalidArgumentError(
                f"Lightness bounds must lie in [0, 100], got "
                f"{self.minimal_lightness}..{self.maximal_lightness}"
            )
        if self.minimal_lightness >= self.maximal_lightness:
            raise InvalidArgumentError(
                f"minimal_lightness ({self.minimal_lightness}) must be below "
                f"maximal_lightness ({self.maximal_lightness})"
            )
        return self

    def satisfied_by(self, lab: np.ndarray) -> np.ndarray:
        """Boolean mask of LAB colors inside the bounds."""
        lab = np.asarray(lab, dtype=np.float64)
        L = lab[..., 0]
        return (
            (compute_chroma(lab) >= self.minimal_saturation)
            & (L >= self.minimal_lightness)
            & (L <= self.maximal_lightness)
        )
