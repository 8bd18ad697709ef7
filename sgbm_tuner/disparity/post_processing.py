"""
Disparity selection and filtering on top of the aggregated cost volume.

Covers winner-take-all selection with the uniqueness test and sub-pixel
refinement, the left-right consistency check and speckle removal.
"""

import cv2
import numpy as np

from utils.logger_config import get_logger
from ..parameters import DISPARITY_SCALE

logger = get_logger(__name__)


def select_disparity(
    aggregated: np.ndarray,
    min_disparity: int,
    uniqueness_ratio: int
) -> np.ndarray:
    """
    Pick the minimum-cost disparity level for every pixel.

    A pixel is rejected when a level further than one step from the winner
    costs less than ``best * 100 / (100 - uniqueness_ratio)``. Accepted
    pixels whose winner is not at either end of the range are refined with a
    parabola through the winner and its two neighbours.

    Args:
        aggregated: Aggregated cost volume (height, width, levels)
        min_disparity: Disparity of level 0
        uniqueness_ratio: Required margin in percent, 0 disables the test

    Returns:
        np.ndarray: int16 fixed-point disparity, rejected pixels set to
        (min_disparity - 1) * 16
    """
    height, width, levels = aggregated.shape
    best = np.argmin(aggregated, axis=2)
    best_cost = np.take_along_axis(aggregated, best[..., None], axis=2)[..., 0].astype(np.int64)

    disparity = best.astype(np.int32) * DISPARITY_SCALE

    # parabolic sub-pixel refinement
    inner = (best > 0) & (best < levels - 1)
    if levels > 2:
        below = np.take_along_axis(aggregated, np.clip(best - 1, 0, levels - 1)[..., None], axis=2)[..., 0]
        above = np.take_along_axis(aggregated, np.clip(best + 1, 0, levels - 1)[..., None], axis=2)[..., 0]
        below = below.astype(np.int64)
        above = above.astype(np.int64)
        denom2 = np.maximum(below + above - 2 * best_cost, 1)
        correction = ((below - above) * DISPARITY_SCALE + denom2) // (denom2 * 2)
        disparity += np.where(inner, correction, 0).astype(np.int32)

    disparity += min_disparity * DISPARITY_SCALE
    invalid_value = (min_disparity - 1) * DISPARITY_SCALE

    if uniqueness_ratio > 0:
        runner_up = np.full((height, width), np.iinfo(np.int64).max, dtype=np.int64)
        for level in range(levels):
            far = np.abs(best - level) > 1
            candidate = np.where(far, aggregated[:, :, level].astype(np.int64), runner_up)
            np.minimum(runner_up, candidate, out=runner_up)
        has_runner_up = runner_up != np.iinfo(np.int64).max
        ambiguous = has_runner_up & (runner_up * (100 - uniqueness_ratio) < best_cost * 100)
        disparity[ambiguous] = invalid_value
        logger.debug(f"Uniqueness test rejected {int(np.count_nonzero(ambiguous))} pixels")

    return disparity.astype(np.int16)


def right_reference_disparity(aggregated: np.ndarray, min_disparity: int) -> np.ndarray:
    """
    Best integer disparity for every right-image pixel.

    Right pixel xr matches left pixel xr + d, so its cost at level k is read
    from the aggregated volume at column xr + min_disparity + k.

    Returns:
        np.ndarray: int32 disparity per right pixel, min_disparity - 1 where
        no left pixel can correspond
    """
    height, width, levels = aggregated.shape
    best_cost = np.full((height, width), np.iinfo(np.int64).max, dtype=np.int64)
    best_disparity = np.full((height, width), min_disparity - 1, dtype=np.int32)

    for level in range(levels):
        d = min_disparity + level
        start = max(0, -d)
        stop = min(width, width - d)
        if start >= stop:
            continue
        cost = aggregated[:, start + d:stop + d, level].astype(np.int64)
        better = cost < best_cost[:, start:stop]
        best_cost[:, start:stop][better] = cost[better]
        best_disparity[:, start:stop][better] = d

    return best_disparity


def check_left_right_consistency(
    disparity: np.ndarray,
    aggregated: np.ndarray,
    min_disparity: int,
    max_diff: int
) -> np.ndarray:
    """
    Invalidate pixels whose left and right based estimates disagree.

    Args:
        disparity: int16 fixed-point left disparity
        aggregated: Aggregated cost volume the disparity was selected from
        min_disparity: Disparity of level 0
        max_diff: Largest tolerated difference in whole pixels

    Returns:
        np.ndarray: Copy of ``disparity`` with inconsistent pixels invalidated
    """
    height, width = disparity.shape
    invalid_value = (min_disparity - 1) * DISPARITY_SCALE
    checked = disparity.copy()

    valid = disparity != invalid_value
    rounded = (disparity.astype(np.int32) + DISPARITY_SCALE // 2) // DISPARITY_SCALE
    right_x = np.arange(width, dtype=np.int32)[None, :] - rounded
    in_view = valid & (right_x >= 0) & (right_x < width)

    right_disparity = right_reference_disparity(aggregated, min_disparity)
    rows = np.repeat(np.arange(height)[:, None], width, axis=1)
    matched = right_disparity[rows, np.clip(right_x, 0, width - 1)]

    inconsistent = in_view & (np.abs(matched - rounded) > max_diff)
    checked[inconsistent] = invalid_value

    logger.debug(f"Left-right check invalidated {int(np.count_nonzero(inconsistent))} pixels")
    return checked


def filter_speckles(
    disparity: np.ndarray,
    invalid_value: int,
    max_speckle_size: int,
    speckle_range: int
) -> np.ndarray:
    """
    Invalidate small connected regions of similar disparity.

    Neighbouring pixels belong to the same region when their fixed-point
    values differ by at most 16 * speckle_range.

    Args:
        disparity: int16 fixed-point disparity
        invalid_value: Value written to removed pixels
        max_speckle_size: Regions with fewer pixels than this are removed
        speckle_range: Largest disparity step inside a region, in pixels

    Returns:
        np.ndarray: Filtered copy of ``disparity``
    """
    filtered = np.ascontiguousarray(disparity, dtype=np.int16).copy()
    filtered, _ = cv2.filterSpeckles(filtered, int(invalid_value), int(max_speckle_size),
                                     int(speckle_range * DISPARITY_SCALE))
    return filtered
