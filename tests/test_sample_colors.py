"""Tests for the candidate color sampler."""

import numpy as np
import pytest

from color_space import ColorConstraint, hex_to_lab, in_gamut, lab_to_hex
from errors import InvalidArgumentError
from sample_colors import grid_shape, sample_candidates


class TestDeterminism:
    def test_same_seed_same_pool(self):
        a = sample_candidates(seed=42)
        b = sample_candidates(seed=42)
        assert np.array_equal(a, b)

    def test_different_seeds_differ(self):
        a = sample_candidates(seed=1)
        b = sample_candidates(seed=2)
        assert a.shape != b.shape or not np.array_equal(a, b)

    def test_generator_accepted(self):
        a = sample_candidates(seed=np.random.default_rng(5))
        b = sample_candidates(seed=5)
        assert np.array_equal(a, b)

    def test_unseeded_pools_differ(self):
        a = sample_candidates()
        b = sample_candidates()
        assert a.shape != b.shape or not np.array_equal(a, b)

    def test_zero_jitter_is_a_fixed_grid(self):
        a = sample_candidates(seed=None, jitter=0)
        b = sample_candidates(seed=None, jitter=0)
        assert np.array_equal(a, b)


class TestPoolContents:
    def test_every_candidate_satisfies_constraint(self, default_pool):
        assert ColorConstraint().satisfied_by(default_pool).all()

    def test_candidates_are_device_colors(self, default_pool):
        assert in_gamut(default_pool).all()
        back = hex_to_lab(lab_to_hex(default_pool))
        assert np.allclose(back, default_pool)

    def test_candidates_are_distinct(self, default_pool):
        hexes = lab_to_hex(default_pool)
        assert len(set(hexes)) == len(hexes)

    def test_hundreds_of_candidates(self, default_pool):
        assert len(default_pool) >= 200

    def test_custom_constraint(self):
        c = ColorConstraint(minimal_saturation=40, minimal_lightness=50, maximal_lightness=70)
        pool = sample_candidates(c, seed=3)
        assert len(pool) > 0
        assert c.satisfied_by(pool).all()


class TestDensity:
    def test_grid_grows_with_density(self):
        assert grid_shape(1.0) == (36, 3)
        assert grid_shape(2.0) == (72, 6)

    def test_pool_size_scales_with_density(self):
        sizes = [len(sample_candidates(seed=0, density=d)) for d in (0.5, 1.0, 2.0)]
        assert sizes[0] < sizes[1] < sizes[2]


class TestInvalid:
    def test_contradictory_lightness(self):
        with pytest.raises(InvalidArgumentError):
            sample_candidates(ColorConstraint(minimal_lightness=80, maximal_lightness=20))

    def test_unreachable_saturation_gives_empty_pool(self):
        with pytest.raises(InvalidArgumentError, match='No color'):
            sample_candidates(ColorConstraint(minimal_saturation=200), seed=0)

    @pytest.mark.parametrize('density', [0, -1, float('inf'), 'dense'])
    def test_bad_density(self, density):
        with pytest.raises(InvalidArgumentError):
            sample_candidates(density=density)

    @pytest.mark.parametrize('jitter', [-0.1, 1.5])
    def test_bad_jitter(self, jitter):
        with pytest.raises(InvalidArgumentError):
            sample_candidates(jitter=jitter)
