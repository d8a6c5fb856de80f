"""Tests for the public entry points: distinct_colors and data_colors."""

import re

import numpy as np
import pandas as pd
import pytest

from color_space import ColorConstraint, hex_to_lab, perceptual_distance
from colorize import data_colors, default_palette_size, distinct_colors, group_centroids
from errors import DimensionMismatchError, InsufficientColorsError, InvalidArgumentError

HEX = re.compile(r'^#[0-9A-F]{6}$')


class TestDistinctColors:
    def test_single_color(self):
        colors = distinct_colors(1, seed=0)
        assert len(colors) == 1
        assert HEX.match(colors[0])
        assert ColorConstraint().satisfied_by(hex_to_lab(colors)).all()

    @pytest.mark.parametrize('n', [0, -1])
    def test_non_positive_count(self, n):
        with pytest.raises(InvalidArgumentError):
            distinct_colors(n)

    @pytest.mark.parametrize('n', [2.0, '3', None])
    def test_non_integer_count(self, n):
        with pytest.raises(InvalidArgumentError):
            distinct_colors(n)

    def test_deterministic_for_seed(self):
        assert distinct_colors(10, seed=123) == distinct_colors(10, seed=123)

    def test_generator_seed(self):
        a = distinct_colors(5, seed=np.random.default_rng(9))
        b = distinct_colors(5, seed=9)
        assert a == b

    @pytest.mark.parametrize('bounds', [
        dict(),
        dict(minimal_saturation=10, minimal_lightness=40, maximal_lightness=60),
        dict(minimal_saturation=50, minimal_lightness=30, maximal_lightness=90),
        dict(minimal_saturation=0, minimal_lightness=0, maximal_lightness=100),
    ])
    @pytest.mark.parametrize('n', [2, 8, 20])
    def test_distinct_and_within_bounds(self, bounds, n):
        colors = distinct_colors(n, seed=1, **bounds)
        assert len(colors) == n
        assert len(set(colors)) == n
        assert all(HEX.match(c) for c in colors)
        assert ColorConstraint(**bounds).satisfied_by(hex_to_lab(colors)).all()

    def test_neighbours_in_walk_are_close(self):
        lab = hex_to_lab(distinct_colors(12, seed=4))
        step = perceptual_distance(lab[:-1], lab[1:])
        # First step of a nearest-neighbour walk is the closest pair from the start
        assert step[0] == pytest.approx(perceptual_distance(lab[0], lab[1:]).min())

    def test_contradictory_lightness(self):
        with pytest.raises(InvalidArgumentError):
            distinct_colors(3, minimal_lightness=70, maximal_lightness=30)

    def test_empty_pool(self):
        with pytest.raises(InvalidArgumentError):
            distinct_colors(3, minimal_saturation=300)

    def test_too_many_colors(self):
        with pytest.raises(InsufficientColorsError):
            distinct_colors(100_000, seed=0)

    def test_avoid_background(self):
        colors = distinct_colors(1, seed=0, avoid='#ffffff')
        lab = hex_to_lab(colors[0])
        assert perceptual_distance(lab, hex_to_lab('#FFFFFF')) > 40


class TestGroupCentroids:
    def test_sequence_labels(self, two_clusters):
        labels, centroids = group_centroids(np.array(two_clusters, dtype=float), ['A', 'A', 'B', 'B'])
        assert labels == ['A', 'B']
        assert centroids.tolist() == [[0.0, 0.5], [10.0, 10.5]]

    def test_mapping_labels(self, two_clusters):
        group = {0: 'x', 1: 'y', 2: 'x', 3: 'y'}
        labels, centroids = group_centroids(np.array(two_clusters, dtype=float), group)
        assert labels == ['x', 'y']
        assert centroids.tolist() == [[5.0, 5.0], [5.0, 6.0]]

    def test_mapping_must_cover_rows(self, two_clusters):
        with pytest.raises(DimensionMismatchError):
            group_centroids(np.array(two_clusters, dtype=float), {0: 'a', 1: 'a', 2: 'b', 7: 'b'})


class TestDataColors:
    def test_two_groups(self, two_clusters):
        result = data_colors(two_clusters, group=['A', 'A', 'B', 'B'], seed=0)
        assert set(result) == {'A', 'B'}
        assert result['A'] != result['B']
        lab = hex_to_lab([result['A'], result['B']])
        assert perceptual_distance(lab[0], lab[1]) > ColorConstraint().minimal_saturation

    def test_group_length_mismatch(self, two_clusters):
        with pytest.raises(DimensionMismatchError):
            data_colors(two_clusters, group=['A', 'B', 'B'])

    def test_ragged_rows(self):
        with pytest.raises(DimensionMismatchError):
            data_colors([[1, 2], [3]])

    def test_singleton_groups_match_ungrouped(self, three_blobs):
        k = len(three_blobs)
        grouped = data_colors(three_blobs, group=list(range(k)), seed=5)
        ungrouped = data_colors(three_blobs, n_colors=k, seed=5)
        assert grouped == ungrouped

    def test_one_color_per_blob(self, three_blobs):
        result = data_colors(three_blobs, n_colors=3, seed=2)
        colors_per_blob = [{result[i] for i in range(b * 4, b * 4 + 4)} for b in range(3)]
        assert all(len(c) == 1 for c in colors_per_blob)
        assert len(set.union(*colors_per_blob)) == 3

    def test_default_palette_is_capped(self, three_blobs):
        result = data_colors(three_blobs, seed=0, max_colors=5)
        assert set(result) == set(range(len(three_blobs)))
        assert len(set(result.values())) == 5

    def test_default_palette_one_per_row(self, two_clusters):
        result = data_colors(two_clusters, seed=0)
        assert len(set(result.values())) == 4

    def test_single_row(self):
        result = data_colors([[1.0, 2.0, 3.0]], seed=0)
        assert list(result) == [0]
        assert HEX.match(result[0])

    def test_single_group(self, two_clusters):
        result = data_colors(two_clusters, group=['only'] * 4, seed=0)
        assert list(result) == ['only']

    def test_deterministic_for_seed(self, three_blobs):
        assert data_colors(three_blobs, seed=8) == data_colors(three_blobs, seed=8)

    def test_dataframe_input(self, two_clusters):
        df = pd.DataFrame(two_clusters, columns=['x', 'y'])
        result = data_colors(df, group=pd.Series(['A', 'A', 'B', 'B']), seed=0)
        assert set(result) == {'A', 'B'}

    def test_group_conflicts_with_color_count(self, two_clusters):
        with pytest.raises(InvalidArgumentError):
            data_colors(two_clusters, group=['A', 'A', 'B', 'B'], n_colors=3)

    def test_more_colors_than_rows(self, two_clusters):
        result = data_colors(two_clusters, n_colors=9, seed=0)
        assert len(set(result.values())) == 4

    def test_custom_metric(self, two_clusters):
        result = data_colors(two_clusters, group=['A', 'A', 'B', 'B'], metric='cityblock', seed=0)
        assert len(result) == 2

    def test_invalid_max_colors(self, two_clusters):
        with pytest.raises(InvalidArgumentError):
            data_colors(two_clusters, max_colors=0)


class TestDefaultPaletteSize:
    def test_caps(self):
        assert default_palette_size(3) == 3
        assert default_palette_size(100) == 12
        assert default_palette_size(100, max_colors=20) == 20

    def test_invalid_cap(self):
        with pytest.raises(InvalidArgumentError):
            default_palette_size(10, max_colors=0)
