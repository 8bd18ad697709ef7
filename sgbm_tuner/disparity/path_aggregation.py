"""
Semi-global cost aggregation.

Costs are accumulated along 1-D paths that end in every pixel. Along a path
r the cost of pixel p at disparity level d is

    L_r(p, d) = C(p, d) + min(L_r(p-r, d),
                              L_r(p-r, d-1) + P1,
                              L_r(p-r, d+1) + P1,
                              min_k L_r(p-r, k) + P2) - min_k L_r(p-r, k)

and the aggregated cost is the sum of L_r over all paths. Each path is
processed as a sweep over columns (or rows for vertical paths), vectorized
across the perpendicular axis and all disparity levels.
"""

from typing import Iterable, Tuple

import numpy as np

from utils.logger_config import get_logger

logger = get_logger(__name__)

# (dy, dx): the path reaches pixel (y, x) from (y - dy, x - dx)
SPARSE_DIRECTIONS = (
    (0, 1),    # left to right
    (0, -1),   # right to left
    (1, 0),    # top to bottom
    (1, 1),    # from top-left
    (1, -1),   # from top-right
)
FULL_DIRECTIONS = SPARSE_DIRECTIONS + (
    (-1, 0),   # bottom to top
    (-1, 1),   # from bottom-left
    (-1, -1),  # from bottom-right
)


def path_directions(full_dp: bool) -> Tuple[Tuple[int, int], ...]:
    """Directions used by the exhaustive (8 paths) or the single-sweep (5 paths) variant."""
    return FULL_DIRECTIONS if full_dp else SPARSE_DIRECTIONS


def accumulator_dtype(max_cost: int, p2: int, num_paths: int) -> np.dtype:
    """Smallest signed integer type that holds the sum over all paths."""
    if num_paths * (int(max_cost) + int(p2)) < np.iinfo(np.int32).max:
        return np.dtype(np.int32)
    return np.dtype(np.int64)


def _path_step(cost: np.ndarray, previous: np.ndarray, p1: int, p2: int) -> np.ndarray:
    """Apply the recurrence to a batch of pixels, shape (n, levels)."""
    previous_min = previous.min(axis=1, keepdims=True)
    best = np.minimum(previous, previous_min + p2)
    np.minimum(best[:, 1:], previous[:, :-1] + p1, out=best[:, 1:])
    np.minimum(best[:, :-1], previous[:, 1:] + p1, out=best[:, :-1])
    return cost + best - previous_min


def _shifted(dy: int):
    """Slices pairing current rows with their predecessors for a row offset dy."""
    if dy > 0:
        return slice(dy, None), slice(None, -dy), slice(None, dy)
    if dy < 0:
        return slice(None, dy), slice(-dy, None), slice(dy, None)
    return slice(None), slice(None), slice(0, 0)


def aggregate_path(
    cost: np.ndarray,
    direction: Tuple[int, int],
    p1: int,
    p2: int,
    dtype=None
) -> np.ndarray:
    """
    Accumulate path costs along one direction.

    Args:
        cost: Cost volume of shape (height, width, levels)
        direction: (dy, dx) step of the path, each in {-1, 0, 1}
        p1: Penalty for a disparity change of one level
        p2: Penalty for larger disparity changes
        dtype: Accumulator type (defaults to the cost volume's)

    Returns:
        np.ndarray: Path costs L_r with the same shape as ``cost``
    """
    dy, dx = direction
    if (dy, dx) == (0, 0) or abs(dy) > 1 or abs(dx) > 1:
        raise ValueError(f"Invalid path direction: {direction}")

    cost = cost.astype(dtype or cost.dtype, copy=False)
    height, width, _ = cost.shape
    path_cost = np.empty_like(cost)

    if dx != 0:
        columns = list(range(width)) if dx > 0 else list(range(width - 1, -1, -1))
        path_cost[:, columns[0]] = cost[:, columns[0]]
        current_rows, previous_rows, path_start_rows = _shifted(dy)
        for x in columns[1:]:
            previous = path_cost[:, x - dx]
            path_cost[current_rows, x] = _path_step(cost[current_rows, x], previous[previous_rows], p1, p2)
            # pixels on the first row of a diagonal path have no predecessor
            path_cost[path_start_rows, x] = cost[path_start_rows, x]
    else:
        rows = list(range(height)) if dy > 0 else list(range(height - 1, -1, -1))
        path_cost[rows[0]] = cost[rows[0]]
        for y in rows[1:]:
            path_cost[y] = _path_step(cost[y], path_cost[y - dy], p1, p2)

    return path_cost


def aggregate_costs(
    cost: np.ndarray,
    p1: int,
    p2: int,
    full_dp: bool = False,
    directions: Iterable[Tuple[int, int]] = None
) -> np.ndarray:
    """
    Sum path costs over all aggregation directions.

    Args:
        cost: Cost volume of shape (height, width, levels)
        p1: Penalty for a disparity change of one level
        p2: Penalty for larger disparity changes, expected to exceed p1
        full_dp: Use all 8 directions instead of the 5 of a single sweep
        directions: Explicit directions, overriding ``full_dp``

    Returns:
        np.ndarray: Aggregated cost volume
    """
    directions = tuple(directions) if directions is not None else path_directions(full_dp)
    dtype = accumulator_dtype(int(cost.max()) if cost.size else 0, p2, len(directions))

    total = np.zeros(cost.shape, dtype=dtype)
    for direction in directions:
        total += aggregate_path(cost, direction, p1, p2, dtype=dtype)

    logger.debug(f"Aggregated costs along {len(directions)} paths (P1={p1}, P2={p2})")
    return total
