"""
Generate a pool of candidate colors spanning the constrained LAB space.

The pool is a hue sweep crossed with a small lightness/chroma grid. Each
candidate is snapped to its 8-bit sRGB value so the pool holds only colors
that survive a hex round trip unchanged.
"""

import logging
import math
from typing import Optional, Union

import numpy as np

from color_space import ColorConstraint, in_gamut, lab_to_rgb, lch_to_lab, rgb_to_lab
from errors import InvalidArgumentError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

HUE_STEPS_PER_DENSITY = 36  # Hue sweep resolution (36 -> every 10 degrees)
LEVELS_PER_DENSITY = 3  # Lightness and chroma levels per hue
MAX_CHROMA = 110.0  # Upper chroma level; sRGB tops out around 130 (blue)
DEFAULT_DENSITY = 2.0
DEFAULT_JITTER = 0.5  # Fraction of a grid cell a seeded candidate may move

Seed = Optional[Union[int, np.random.Generator]]


def grid_shape(density: float) -> tuple[int, int]:
    """Number of hues and number of lightness/chroma levels for a density."""
    n_hues = max(1, int(round(HUE_STEPS_PER_DENSITY * density)))
    n_levels = max(1, int(round(LEVELS_PER_DENSITY * density)))
    return n_hues, n_levels


def sample_candidates(constraint: Optional[ColorConstraint] = None,
                      seed: Seed = None,
                      density: float = DEFAULT_DENSITY,
                      jitter: float = DEFAULT_JITTER) -> np.ndarray:
    """
    Sample candidate colors satisfying a constraint.

    Args:
        constraint: Saturation/lightness bounds (defaults exclude near-gray,
            near-black and near-white)
        seed: Integer seed or Generator for the jitter. None draws fresh
            entropy, so unseeded calls differ unless jitter is 0.
        density: Sampling density; the grid grows linearly with it along
            each axis. Independent of how many colors are later selected.
        jitter: How far each candidate may move inside its grid cell (0-1).
            0 gives the regular grid.

    Returns:
        Array of shape (m, 3) of LAB colors, in hue-sweep order, pairwise
        distinct as device colors.

    Raises:
        InvalidArgumentError: Bad constraint, density or jitter, or no
            candidate survives the constraint
    """
    constraint = (constraint or ColorConstraint()).validate()
    if not (isinstance(density, (int, float, np.number)) and math.isfinite(density) and density > 0):
        raise InvalidArgumentError(f"density must be a positive number, got {density!r}")
    if not (isinstance(jitter, (int, float, np.number)) and 0 <= jitter <= 1):
        raise InvalidArgumentError(f"jitter must lie in [0, 1], got {jitter!r}")

    rng = np.random.default_rng(seed)
    n_hues, n_levels = grid_shape(density)

    min_L, max_L = constraint.minimal_lightness, constraint.maximal_lightness
    min_C = constraint.minimal_saturation
    max_C = max(MAX_CHROMA, min_C)

    hue_step = 360.0 / n_hues
    L_step = (max_L - min_L) / max(n_levels - 1, 1)
    C_step = (max_C - min_C) / max(n_levels - 1, 1)

    hues = np.arange(n_hues) * hue_step
    lightness = np.linspace(min_L, max_L, n_levels)
    chroma = np.linspace(min_C, max_C, n_levels)

    H, L, C = np.meshgrid(hues, lightness, chroma, indexing='ij')

    if jitter > 0:
        H = H + rng.uniform(-0.5, 0.5, H.shape) * hue_step * jitter
        L = np.clip(L + rng.uniform(-0.5, 0.5, L.shape) * L_step * jitter, min_L, max_L)
        C = np.clip(C + rng.uniform(-0.5, 0.5, C.shape) * C_step * jitter, min_C, max_C)

    lab = lch_to_lab(L.ravel(), C.ravel(), H.ravel() % 360)
    n_grid = len(lab)

    # Drop colors with no device equivalent, then snap to 8-bit sRGB
    lab = lab[in_gamut(lab)]
    rgb = lab_to_rgb(lab)
    if len(rgb):
        _, first = np.unique(rgb, axis=0, return_index=True)
        rgb = rgb[np.sort(first)]

    pool = rgb_to_lab(rgb).reshape(-1, 3)
    # Snapping can nudge a color just past a bound
    pool = pool[constraint.satisfied_by(pool)]

    logger.debug(
        "Sampled %d grid colors (%d hues x %d x %d), %d survive gamut and constraint",
        n_grid, n_hues, n_levels, n_levels, len(pool),
    )

    if len(pool) == 0:
        raise InvalidArgumentError(
            f"No color satisfies saturation >= {min_C} and lightness in "
            f"[{min_L}, {max_L}]"
        )

    return pool
