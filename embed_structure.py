"""
Linearize data rows so that similar rows sit next to each other.

Approach:
1. Pairwise distances between feature vectors
2. Average-linkage (UPGMA) agglomerative clustering
3. Optimal leaf ordering of the dendrogram: among the 2^(k-1) leaf orders the
   tree allows, take the one with the smallest sum of adjacent distances
"""

import logging
from typing import Callable, Optional, Union

import numpy as np
from sklearn.metrics import pairwise_distances

from errors import DimensionMismatchError, InvalidArgumentError

logger = logging.getLogger(__name__)

Metric = Union[str, Callable]


# =============================================================================
# Input
# =============================================================================

def as_feature_matrix(matrix) -> np.ndarray:
    """
    Coerce rows of numbers into a float (rows, columns) array.

    A 1-D vector becomes a single feature column.

    Raises:
        DimensionMismatchError: If rows have different lengths or dimensions
        InvalidArgumentError: If the matrix is empty, non-numeric or not finite
    """
    if hasattr(matrix, 'to_numpy'):
        matrix = matrix.to_numpy()

    if not isinstance(matrix, np.ndarray):
        rows = list(matrix)
        dims = sorted({np.ndim(row) for row in rows})
        if len(dims) > 1:
            raise DimensionMismatchError(f"Rows mix scalars and vectors (dimensions {dims})")
        if rows and dims == [1]:
            lengths = sorted({len(row) for row in rows})
            if len(lengths) > 1:
                raise DimensionMismatchError(f"Rows have inconsistent lengths: {lengths}")
        matrix = rows

    try:
        array = np.asarray(matrix, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(f"Matrix must hold real numbers: {e}") from e

    if array.ndim == 1:
        array = array.reshape(-1, 1)
    if array.ndim != 2:
        raise DimensionMismatchError(f"Expected a 2-D matrix, got {array.ndim} dimensions")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise InvalidArgumentError(f"Matrix is empty (shape {array.shape})")
    if not np.all(np.isfinite(array)):
        raise InvalidArgumentError("Matrix contains NaN or infinite values")

    return array


# =============================================================================
# Distances
# =============================================================================

def distance_matrix(features: np.ndarray, metric: Metric = 'euclidean',
                    n_jobs: Optional[int] = None) -> np.ndarray:
    """
    Pairwise distances between rows.

    Args:
        features: Array of shape (k, d)
        metric: Any metric name scikit-learn accepts, or a callable on two rows
        n_jobs: Parallel workers for the row blocks (None = serial)

    Returns:
        Symmetric (k, k) array with a zero diagonal
    """
    distances = pairwise_distances(features, metric=metric, n_jobs=n_jobs)
    distances = (distances + distances.T) / 2
    np.fill_diagonal(distances, 0.0)

    if not np.all(np.isfinite(distances)) or (distances < 0).any():
        raise InvalidArgumentError(f"Metric {metric!r} produced negative or non-finite distances")

    return distances


def path_length(distances: np.ndarray, ordering: np.ndarray) -> float:
    """Sum of distances between consecutive items of an ordering."""
    ordering = np.asarray(ordering, dtype=np.intp)
    if len(ordering) < 2:
        return 0.0
    return float(distances[ordering[:-1], ordering[1:]].sum())


# =============================================================================
# Hierarchical Clustering
# =============================================================================

def average_linkage(distances: np.ndarray) -> np.ndarray:
    """
    Agglomerative clustering with average linkage (UPGMA).

    Ties merge the pair with the lowest row index first, then lowest column.

    Returns:
        Linkage matrix of shape (k-1, 4) in SciPy's layout:
        [cluster_a, cluster_b, height, size]. Leaves are 0..k-1, the cluster
        formed at row s is k+s.
    """
    k = len(distances)
    linkage = np.zeros((max(k - 1, 0), 4))

    work = np.array(distances, dtype=np.float64)
    np.fill_diagonal(work, np.inf)
    sizes = np.ones(k)
    node = np.arange(k)

    # Slot i always holds the cluster whose smallest member is i
    for step in range(k - 1):
        i, j = divmod(int(np.argmin(work)), k)
        height = work[i, j]
        a, b = sorted((node[i], node[j]))
        merged_size = sizes[i] + sizes[j]
        linkage[step] = [a, b, height, merged_size]

        merged = (sizes[i] * work[i] + sizes[j] * work[j]) / merged_size
        work[i, :] = merged
        work[:, i] = merged
        work[i, i] = np.inf
        work[j, :] = np.inf
        work[:, j] = np.inf

        sizes[i] = merged_size
        node[i] = k + step

    return linkage


def optimal_leaf_ordering(linkage: np.ndarray, distances: np.ndarray) -> np.ndarray:
    """
    Leaf order of the dendrogram minimizing the sum of adjacent distances.

    Dynamic programme of Bar-Joseph et al. (2001). For every cluster v with
    children A and B, and every pair of leaves u in A, w in B:

        cost(v, u, w) = min over m in A, n in B of
                        cost(A, u, m) + d(m, n) + cost(B, n, w)

    where cost(v, u, w) is the best path through all leaves of v starting at
    u and ending at w. Only the winning (m, n) of each pair is kept, so
    memory stays O(k^2). Ties go to the lowest leaf index.

    Args:
        linkage: SciPy-layout linkage matrix (see average_linkage)
        distances: (k, k) distance matrix the linkage was built from

    Returns:
        Permutation of 0..k-1
    """
    k = len(distances)
    if k <= 2:
        return np.arange(k)

    leaves = {i: np.array([i]) for i in range(k)}
    cost = {i: np.zeros((1, 1)) for i in range(k)}
    choice = {}

    for step, row in enumerate(linkage):
        a, b = int(row[0]), int(row[1])
        v = k + step
        leaves_a, leaves_b = leaves.pop(a), leaves.pop(b)
        cost_a, cost_b = cost.pop(a), cost.pop(b)
        n_a, n_b = len(leaves_a), len(leaves_b)
        cross_d = distances[np.ix_(leaves_a, leaves_b)]
        cols = np.arange(n_b)

        # Best exit leaf m of A for each (start u, first leaf n of B)
        via = np.empty((n_a, n_b))
        via_m = np.empty((n_a, n_b), dtype=np.intp)
        for u in range(n_a):
            total = cost_a[u][:, None] + cross_d
            via_m[u] = np.argmin(total, axis=0)
            via[u] = total[via_m[u], cols]

        # Best entry leaf n of B for each (start u, end w)
        best = np.empty((n_a, n_b))
        best_n = np.empty((n_a, n_b), dtype=np.intp)
        for u in range(n_a):
            total = via[u][:, None] + cost_b
            best_n[u] = np.argmin(total, axis=0)
            best[u] = total[best_n[u], cols]
        best_m = via_m[np.arange(n_a)[:, None], best_n]

        choice[v] = (a, b, leaves_a, leaves_b, best_m, best_n)

        # Keep the merged leaf list sorted so argmin ties favour low indices
        merged = np.concatenate([leaves_a, leaves_b])
        order = np.argsort(merged, kind='stable')
        position = np.empty(len(merged), dtype=np.intp)
        position[order] = np.arange(len(merged))
        pos_a, pos_b = position[:n_a], position[n_a:]

        merged_cost = np.full((len(merged), len(merged)), np.inf)
        merged_cost[np.ix_(pos_a, pos_b)] = best
        merged_cost[np.ix_(pos_b, pos_a)] = best.T

        leaves[v] = merged[order]
        cost[v] = merged_cost

    root = k + len(linkage) - 1
    root_leaves = leaves[root]
    start, end = divmod(int(np.argmin(cost[root])), len(root_leaves))

    return _trace_path(choice, k, root, root_leaves[start], root_leaves[end])


def _trace_path(choice: dict, k: int, root: int, start: int, end: int) -> np.ndarray:
    """Expand the stored (m, n) choices into the full leaf sequence."""
    path = []
    stack = [(root, start, end)]

    while stack:
        v, first, last = stack.pop()
        if v < k:
            path.append(v)
            continue

        a, b, leaves_a, leaves_b, best_m, best_n = choice[v]
        i = np.searchsorted(leaves_a, first)
        first_in_a = i < len(leaves_a) and leaves_a[i] == first

        if first_in_a:
            j = np.searchsorted(leaves_b, last)
            m, n = leaves_a[best_m[i, j]], leaves_b[best_n[i, j]]
            # Pushed in reverse: A's segment comes out first
            stack.append((b, n, last))
            stack.append((a, first, m))
        else:
            # Same path walked backwards: B from first to n, then A from m to last
            i = np.searchsorted(leaves_a, last)
            j = np.searchsorted(leaves_b, first)
            m, n = leaves_a[best_m[i, j]], leaves_b[best_n[i, j]]
            stack.append((a, m, last))
            stack.append((b, first, n))

    return np.array(path, dtype=np.intp)


# =============================================================================
# Main Pipeline
# =============================================================================

def embed(matrix, metric: Metric = 'euclidean', n_jobs: Optional[int] = None) -> tuple[np.ndarray, np.ndarray]:
    """
    Distance matrix and similarity-preserving ordering of the rows.

    Args:
        matrix: Rows of feature vectors (elements or group centroids)
        metric: Distance metric, see distance_matrix
        n_jobs: Parallel workers for the distance matrix

    Returns:
        Tuple of (distances, ordering)
    """
    features = as_feature_matrix(matrix)
    distances = distance_matrix(features, metric=metric, n_jobs=n_jobs)

    k = len(features)
    if k <= 2:
        return distances, np.arange(k)

    linkage = average_linkage(distances)
    ordering = optimal_leaf_ordering(linkage, distances)

    logger.debug("Ordered %d rows, adjacent distance sum %.3f", k, path_length(distances, ordering))
    return distances, ordering
