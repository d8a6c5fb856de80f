"""Shared test fixtures."""

import numpy as np
import pytest

from sample_colors import sample_candidates


# Two well-separated 2-point clusters
TWO_CLUSTERS = [[0, 0], [0, 1], [10, 10], [10, 11]]


def make_blobs(centers, per_cluster: int, spread: float = 0.3, seed: int = 0) -> np.ndarray:
    """Rows grouped cluster by cluster around the given centers."""
    rng = np.random.default_rng(seed)
    centers = np.asarray(centers, dtype=float)
    rows = [c + rng.normal(scale=spread, size=(per_cluster, centers.shape[1])) for c in centers]
    return np.vstack(rows)


@pytest.fixture
def two_clusters() -> list:
    return [list(row) for row in TWO_CLUSTERS]


@pytest.fixture
def three_blobs() -> np.ndarray:
    return make_blobs([[0, 0, 0], [20, 0, 0], [0, 20, 0]], per_cluster=4)


@pytest.fixture(scope='session')
def default_pool() -> np.ndarray:
    return sample_candidates(seed=7)


@pytest.fixture
def random_features() -> np.ndarray:
    return np.random.default_rng(3).normal(size=(14, 5))
