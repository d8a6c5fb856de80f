"""
Pick maximally distinct colors from a candidate pool.

Selection is greedy farthest-point (max-min): every new color is the
candidate farthest from its nearest already-chosen color. The chosen colors
are then walked nearest-neighbour first so that adjacent palette entries look
alike.
"""

import logging
from typing import Optional

import numpy as np
from scipy.spatial.distance import cdist, pdist, squareform

from color_space import compute_chroma
from errors import InsufficientColorsError

logger = logging.getLogger(__name__)


def select_distinct(pool: np.ndarray, n: int, avoid: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Select n colors from the pool maximizing their minimum pairwise distance.

    Args:
        pool: Array of shape (m, 3) of distinct LAB candidates
        n: Number of colors to select
        avoid: Optional LAB colors (e.g. a background) treated as already
            chosen. They steer the selection but are not returned.

    Returns:
        Array of shape (n, 3), ordered as a color walk (see order_as_walk)

    Raises:
        InsufficientColorsError: If n < 1 or the pool holds fewer than n colors
    """
    pool = np.asarray(pool, dtype=np.float64).reshape(-1, 3)
    if n < 1:
        raise InsufficientColorsError(f"Need at least one color, got n={n}")
    if n > len(pool):
        raise InsufficientColorsError(
            f"Requested {n} distinct colors but only {len(pool)} candidates satisfy the constraints"
        )

    chosen = []
    min_dist = np.full(len(pool), np.inf)

    if avoid is not None:
        avoid = np.asarray(avoid, dtype=np.float64).reshape(-1, 3)

    if avoid is not None and len(avoid):
        min_dist = cdist(pool, avoid).min(axis=1)
        first = int(np.argmax(min_dist))
    else:
        # Most saturated candidate seeds the walk; argmax keeps the lowest index on ties
        first = int(np.argmax(compute_chroma(pool)))

    index = first
    for _ in range(n):
        chosen.append(index)
        min_dist = np.minimum(min_dist, cdist(pool, pool[index:index + 1]).ravel())
        min_dist[chosen] = -np.inf
        index = int(np.argmax(min_dist))

    selected = pool[chosen]
    logger.debug(
        "Selected %d of %d candidates, min separation %.1f",
        n, len(pool), min_pairwise_distance(selected),
    )
    return order_as_walk(selected)


def order_as_walk(colors: np.ndarray) -> np.ndarray:
    """
    Reorder colors into a greedy nearest-neighbour walk.

    Starts at the darkest color and repeatedly steps to the closest unvisited
    one. Ties go to the lowest index.
    """
    colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    n = len(colors)
    if n <= 1:
        return colors.copy()

    distances = squareform(pdist(colors))
    visited = np.zeros(n, dtype=bool)

    current = int(np.argmin(colors[:, 0]))
    walk = [current]
    visited[current] = True

    for _ in range(n - 1):
        step = np.where(visited, np.inf, distances[current])
        current = int(np.argmin(step))
        walk.append(current)
        visited[current] = True

    return colors[walk]


def min_pairwise_distance(colors: np.ndarray) -> float:
    """Smallest LAB distance between any two colors (inf for fewer than two)."""
    colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    if len(colors) < 2:
        return float('inf')
    return float(pdist(colors).min())
