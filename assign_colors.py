"""
Pair ordered data items with ordered palette colors.

Both sequences already put similar things next to each other, so items and
colors are matched by rank. Equal lengths pair up index by index; otherwise
the match is an exact minimum-cost assignment on squared rank differences.
"""

import logging

import numpy as np

from errors import InvalidArgumentError

logger = logging.getLogger(__name__)


# =============================================================================
# Linear Assignment
# =============================================================================

def linear_sum_assignment(cost: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Minimum-cost matching of rows to columns (Hungarian method).

    Shortest augmenting paths with dual potentials, O(n^2 m) for n <= m.
    Rectangular matrices match every row of the smaller side.

    Args:
        cost: Array of shape (rows, cols)

    Returns:
        Tuple of (row_ind, col_ind) sorted by row, like
        scipy.optimize.linear_sum_assignment

    Raises:
        InvalidArgumentError: If cost is not 2-D or holds NaN/inf
    """
    cost = np.asarray(cost, dtype=np.float64)
    if cost.ndim != 2:
        raise InvalidArgumentError(f"Cost matrix must be 2-D, got shape {cost.shape}")
    if not np.all(np.isfinite(cost)):
        raise InvalidArgumentError("Cost matrix contains NaN or infinite values")

    transposed = cost.shape[0] > cost.shape[1]
    if transposed:
        cost = cost.T

    n, m = cost.shape
    if n == 0:
        empty = np.array([], dtype=np.intp)
        return empty, empty.copy()

    # 1-based columns; column 0 is the virtual source of each augmenting path
    u = np.zeros(n + 1)
    v = np.zeros(m + 1)
    owner = np.zeros(m + 1, dtype=np.intp)  # row matched to each column, 0 = free
    way = np.zeros(m + 1, dtype=np.intp)

    for row in range(1, n + 1):
        owner[0] = row
        col = 0
        min_slack = np.full(m + 1, np.inf)
        used = np.zeros(m + 1, dtype=bool)

        while True:
            used[col] = True
            current = owner[col]
            free = ~used[1:]

            slack = cost[current - 1] - u[current] - v[1:]
            better = free & (slack < min_slack[1:])
            min_slack[1:][better] = slack[better]
            way[1:][better] = col

            candidates = np.where(free, min_slack[1:], np.inf)
            next_col = int(np.argmin(candidates)) + 1
            delta = candidates[next_col - 1]

            visited = np.nonzero(used)[0]
            u[owner[visited]] += delta
            v[visited] -= delta
            min_slack[1:][free] -= delta

            col = next_col
            if owner[col] == 0:
                break

        # Flip the augmenting path
        while col:
            prev = way[col]
            owner[col] = owner[prev]
            col = prev

    col_for_row = np.empty(n, dtype=np.intp)
    matched = np.nonzero(owner[1:])[0]
    col_for_row[owner[1:][matched] - 1] = matched

    rows = np.arange(n, dtype=np.intp)
    if transposed:
        order = np.argsort(col_for_row)
        return col_for_row[order], rows[order]
    return rows, col_for_row


# =============================================================================
# Rank Matching
# =============================================================================

def normalized_ranks(count: int) -> np.ndarray:
    """Positions 0..count-1 scaled to [0, 1]."""
    if count <= 1:
        return np.zeros(count)
    return np.arange(count) / (count - 1)


def slot_colors(item_count: int, n_colors: int) -> np.ndarray:
    """
    Color index of each of item_count slots, spreading items evenly.

    Color j gets item_count // n_colors slots, plus one for the first
    item_count % n_colors colors.
    """
    counts = item_count // n_colors + (np.arange(n_colors) < item_count % n_colors)
    return np.repeat(np.arange(n_colors), counts)


def _validate_ordering(ordering) -> np.ndarray:
    ordering = np.asarray(ordering)
    if ordering.ndim != 1 or not np.issubdtype(ordering.dtype, np.integer):
        raise InvalidArgumentError("Ordering must be a 1-D array of item indices")
    if not np.array_equal(np.sort(ordering), np.arange(len(ordering))):
        raise InvalidArgumentError("Ordering must be a permutation of 0..k-1")
    return ordering.astype(np.intp)


def assign(ordering, n_colors: int) -> np.ndarray:
    """
    Give every item a palette index.

    Args:
        ordering: Permutation of item indices, similar items adjacent
        n_colors: Palette size; the palette is itself in walk order

    Returns:
        Array where entry i is the palette index of item i. Indices repeat
        only when n_colors is smaller than the item count.

    Raises:
        InvalidArgumentError: If ordering is not a permutation or n_colors < 1
    """
    ordering = _validate_ordering(ordering)
    if isinstance(n_colors, bool) or not isinstance(n_colors, (int, np.integer)) or n_colors < 1:
        raise InvalidArgumentError(f"n_colors must be a positive integer, got {n_colors!r}")

    k = len(ordering)
    assignment = np.empty(k, dtype=np.intp)

    if k == n_colors:
        assignment[ordering] = np.arange(k)
        return assignment
    if n_colors == 1:
        assignment[:] = 0
        return assignment

    item_ranks = normalized_ranks(k)
    color_ranks = normalized_ranks(n_colors)

    if n_colors < k:
        # Colors are reused: each color owns a balanced share of slots
        slots = slot_colors(k, n_colors)
        cost = (item_ranks[:, None] - color_ranks[slots][None, :]) ** 2
        rows, cols = linear_sum_assignment(cost)
        colors_by_position = slots[cols]
    else:
        # More colors than items: pick the best-aligned subset
        cost = (item_ranks[:, None] - color_ranks[None, :]) ** 2
        rows, cols = linear_sum_assignment(cost)
        colors_by_position = cols

    assignment[ordering[rows]] = colors_by_position

    logger.debug(
        "Assigned %d items to %d colors, rank cost %.4f",
        k, n_colors, assignment_cost(ordering, assignment, n_colors),
    )
    return assignment


def assignment_cost(ordering, assignment: np.ndarray, n_colors: int) -> float:
    """Sum over items of squared difference between item rank and color rank."""
    ordering = np.asarray(ordering, dtype=np.intp)
    item_ranks = normalized_ranks(len(ordering))
    color_ranks = normalized_ranks(n_colors)
    colors_by_position = np.asarray(assignment)[ordering]
    return float(((item_ranks - color_ranks[colors_by_position]) ** 2).sum())
