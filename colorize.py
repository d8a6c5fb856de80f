#!/usr/bin/env python3
"""
Structure-preserving distinct colors for multidimensional data.

Two entry points:

    distinct_colors(n)          -> n maximally distinct '#RRGGBB' colors,
                                   ordered so neighbours look alike
    data_colors(matrix, group)  -> {row or group label: '#RRGGBB'}, with
                                   similar rows getting similar colors

Pipeline: Sample candidates -> Select distinct palette -> Order rows -> Assign
"""

import logging
from collections.abc import Mapping
from typing import Optional, Sequence, Union

import numpy as np

from assign_colors import assign
from color_space import (
    DEFAULT_MAXIMAL_LIGHTNESS,
    DEFAULT_MINIMAL_LIGHTNESS,
    DEFAULT_MINIMAL_SATURATION,
    ColorConstraint,
    hex_to_lab,
    lab_to_hex,
)
from embed_structure import Metric, as_feature_matrix, embed, path_length
from errors import DimensionMismatchError, InvalidArgumentError
from sample_colors import DEFAULT_DENSITY, Seed, sample_candidates
from select_colors import select_distinct

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Palette size for ungrouped rows when no color count is given. Past roughly
# a dozen hues, neighbouring palette entries stop being told apart reliably.
DEFAULT_MAX_COLORS = 12


def default_palette_size(item_count: int, max_colors: int = DEFAULT_MAX_COLORS) -> int:
    """Palette size used for ungrouped rows: one color each, capped at max_colors."""
    _check_count(max_colors, 'max_colors')
    return min(item_count, max_colors)


def _check_count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise InvalidArgumentError(f"{name} must be >= 1, got {value}")
    return int(value)


def _palette(n: int, constraint: ColorConstraint, seed: Seed, density: float,
             avoid: Optional[np.ndarray] = None) -> np.ndarray:
    """Sample a candidate pool and pick n distinct colors from it, in walk order."""
    pool = sample_candidates(constraint, seed=seed, density=density)
    return select_distinct(pool, n, avoid=avoid)


# =============================================================================
# Distinct Colors
# =============================================================================

def distinct_colors(n: int,
                    minimal_saturation: float = DEFAULT_MINIMAL_SATURATION,
                    minimal_lightness: float = DEFAULT_MINIMAL_LIGHTNESS,
                    maximal_lightness: float = DEFAULT_MAXIMAL_LIGHTNESS,
                    seed: Seed = None,
                    density: float = DEFAULT_DENSITY,
                    avoid: Optional[Union[str, Sequence[str]]] = None) -> list[str]:
    """
    Generate n perceptually distinct colors.

    Args:
        n: Number of colors (>= 1)
        minimal_saturation: Lowest LAB chroma allowed
        minimal_lightness: Lowest L* allowed
        maximal_lightness: Highest L* allowed
        seed: Integer seed or numpy Generator; fixed seeds give identical output
        density: Candidate sampling density
        avoid: Colors (e.g. the plot background) to stay away from

    Returns:
        List of n uppercase '#RRGGBB' strings, consecutive entries close

    Raises:
        InvalidArgumentError: n < 1, contradictory bounds, or empty pool
        InsufficientColorsError: Fewer than n candidates meet the bounds
    """
    n = _check_count(n, 'n')
    constraint = ColorConstraint(minimal_saturation, minimal_lightness, maximal_lightness).validate()
    avoid_lab = hex_to_lab(avoid) if avoid else None

    palette = _palette(n, constraint, seed, density, avoid=avoid_lab)
    return lab_to_hex(palette)


# =============================================================================
# Data Colors
# =============================================================================

def group_centroids(features: np.ndarray, group) -> tuple[list, np.ndarray]:
    """
    Average rows per group label.

    Args:
        features: Array of shape (rows, d)
        group: One label per row, or a mapping row index -> label covering
            every row

    Returns:
        Tuple of (labels in first-appearance order, centroids of shape (g, d))

    Raises:
        DimensionMismatchError: If the labels don't cover the rows one-to-one
    """
    n_rows = len(features)

    if isinstance(group, Mapping):
        if len(group) != n_rows or any(i not in group for i in range(n_rows)):
            raise DimensionMismatchError(
                f"Group mapping must cover rows 0..{n_rows - 1}, got {len(group)} entries"
            )
        row_labels = [group[i] for i in range(n_rows)]
    else:
        if hasattr(group, 'tolist'):
            group = group.tolist()
        row_labels = list(group)
        if len(row_labels) != n_rows:
            raise DimensionMismatchError(
                f"Got {len(row_labels)} group labels for {n_rows} rows"
            )

    labels = list(dict.fromkeys(row_labels))
    index = {label: i for i, label in enumerate(labels)}
    codes = np.array([index[label] for label in row_labels], dtype=np.intp)

    sums = np.zeros((len(labels), features.shape[1]))
    np.add.at(sums, codes, features)
    counts = np.bincount(codes, minlength=len(labels))

    return labels, sums / counts[:, None]


def data_colors(matrix,
                group=None,
                seed: Seed = None,
                n_colors: Optional[int] = None,
                max_colors: int = DEFAULT_MAX_COLORS,
                metric: Metric = 'euclidean',
                n_jobs: Optional[int] = None,
                minimal_saturation: float = DEFAULT_MINIMAL_SATURATION,
                minimal_lightness: float = DEFAULT_MINIMAL_LIGHTNESS,
                maximal_lightness: float = DEFAULT_MAXIMAL_LIGHTNESS,
                density: float = DEFAULT_DENSITY) -> dict:
    """
    Color rows (or groups of rows) so that similar feature vectors look alike.

    Args:
        matrix: Rows x columns of real numbers
        group: Optional group label per row (sequence or row -> label mapping).
            Rows are averaged per group and each group gets its own color.
        seed: Integer seed or numpy Generator
        n_colors: Palette size for ungrouped rows. Defaults to
            default_palette_size(rows, max_colors); colors are reused when it
            is smaller than the row count.
        max_colors: Cap used by the default palette size
        metric: Row distance metric (scikit-learn name or callable)
        n_jobs: Parallel workers for the distance matrix
        minimal_saturation, minimal_lightness, maximal_lightness: Color bounds
        density: Candidate sampling density

    Returns:
        Dict of row index (or group label) -> '#RRGGBB'

    Raises:
        DimensionMismatchError: Ragged rows or label count != row count
        InvalidArgumentError: Bad matrix or parameters
        InsufficientColorsError: Palette larger than the constrained pool
    """
    features = as_feature_matrix(matrix)
    constraint = ColorConstraint(minimal_saturation, minimal_lightness, maximal_lightness).validate()

    if group is not None:
        labels, features = group_centroids(features, group)
        n = len(labels)
        if n_colors is not None and _check_count(n_colors, 'n_colors') != n:
            raise InvalidArgumentError(
                f"n_colors={n_colors} conflicts with {n} groups; grouped palettes have one color per group"
            )
    else:
        labels = list(range(len(features)))
        if n_colors is None:
            n = default_palette_size(len(labels), max_colors)
        else:
            n = _check_count(n_colors, 'n_colors')

    if len(labels) == 1:
        palette = _palette(1, constraint, seed, density)
        return {labels[0]: lab_to_hex(palette[0])}

    distances, ordering = embed(features, metric=metric, n_jobs=n_jobs)
    palette = _palette(n, constraint, seed, density)
    assignment = assign(ordering, n)
    hexes = lab_to_hex(palette)

    logger.info(
        "Colored %d %s with %d colors (adjacent distance sum %.3f)",
        len(labels), 'groups' if group is not None else 'rows', n,
        path_length(distances, ordering),
    )

    return {label: hexes[assignment[i]] for i, label in enumerate(labels)}


# =============================================================================
# CLI
# =============================================================================

def main():
    import argparse
    import sys
    from pathlib import Path

    import pandas as pd

    from errors import ColorAssignmentError
    from swatches import render_swatches

    parser = argparse.ArgumentParser(
        description='Generate distinct colors, or color the rows of a CSV by similarity.'
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        '--count', '-n',
        type=int,
        help='Print this many distinct colors'
    )
    mode.add_argument(
        '--input', '-i',
        help='CSV file whose numeric columns are the feature vectors'
    )
    parser.add_argument(
        '--group-column', '-g',
        help='Column holding group labels; each group gets one color'
    )
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible colors')
    parser.add_argument('--n-colors', type=int, default=None, help='Palette size for ungrouped rows')
    parser.add_argument('--max-colors', type=int, default=DEFAULT_MAX_COLORS,
                        help=f'Cap on the default palette size (default {DEFAULT_MAX_COLORS})')
    parser.add_argument('--minimal-saturation', type=float, default=DEFAULT_MINIMAL_SATURATION)
    parser.add_argument('--minimal-lightness', type=float, default=DEFAULT_MINIMAL_LIGHTNESS)
    parser.add_argument('--maximal-lightness', type=float, default=DEFAULT_MAXIMAL_LIGHTNESS)
    parser.add_argument('--metric', default='euclidean', help='Row distance metric')
    parser.add_argument('--swatch', help='Also write a PNG swatch preview to this path')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log pipeline details')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    bounds = dict(
        minimal_saturation=args.minimal_saturation,
        minimal_lightness=args.minimal_lightness,
        maximal_lightness=args.maximal_lightness,
    )

    try:
        if args.count is not None:
            colors = distinct_colors(args.count, seed=args.seed, **bounds)
            result = {i: color for i, color in enumerate(colors)}
        else:
            input_path = Path(args.input)
            if not input_path.is_file():
                print(f"Error: Input file not found: {input_path}", file=sys.stderr)
                sys.exit(2)

            try:
                df = pd.read_csv(input_path)
            except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
                print(f"Error reading {input_path}: {e}", file=sys.stderr)
                sys.exit(2)

            group = None
            if args.group_column:
                if args.group_column not in df.columns:
                    print(f"Error: No column named {args.group_column!r} in {input_path}", file=sys.stderr)
                    sys.exit(2)
                group = df[args.group_column].tolist()
                df = df.drop(columns=[args.group_column])

            features = df.select_dtypes(include='number')
            if features.shape[1] == 0:
                print(f"Error: No numeric columns in {input_path}", file=sys.stderr)
                sys.exit(2)

            result = data_colors(
                features.to_numpy(),
                group=group,
                seed=args.seed,
                n_colors=args.n_colors,
                max_colors=args.max_colors,
                metric=args.metric,
                **bounds,
            )
    except ColorAssignmentError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for key, color in result.items():
        print(f"{key}\t{color}")

    if args.swatch:
        try:
            render_swatches(result, args.swatch)
        except OSError as e:
            print(f"Error writing swatch: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"\nWrote: {args.swatch}", file=sys.stderr)


if __name__ == '__main__':
    main()
