"""
Matching cost computation for semi-global block matching.

Both images are pre-filtered with a truncated horizontal derivative, then a
per-pixel cost is computed for every candidate disparity and summed over a
square block.
"""

import cv2
import numpy as np

from utils.logger_config import get_logger

logger = get_logger(__name__)

# weight of the raw intensity term, as a right shift of the absolute difference
INTENSITY_SHIFT = 2


def prefilter_image(image: np.ndarray, pre_filter_cap: int) -> np.ndarray:
    """
    Apply the truncated x-derivative pre-filter.

    The Sobel response is clipped to [-cap, cap] and shifted to [0, 2*cap],
    which makes the cost insensitive to additive illumination changes.

    Args:
        image: Grayscale uint8 image
        pre_filter_cap: Truncation value in [1, 63]

    Returns:
        np.ndarray: int32 pre-filtered image
    """
    sobel = cv2.Sobel(image, cv2.CV_16S, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
    return np.clip(sobel.astype(np.int32), -pre_filter_cap, pre_filter_cap) + pre_filter_cap


def max_pixel_cost(pre_filter_cap: int) -> int:
    return 2 * pre_filter_cap + (255 >> INTENSITY_SHIFT)


def compute_cost_volume(
    left: np.ndarray,
    right: np.ndarray,
    min_disparity: int,
    num_disparities: int,
    block_size: int,
    pre_filter_cap: int
) -> np.ndarray:
    """
    Build the block matching cost volume.

    Entry [y, x, k] is the summed cost of matching the block around left
    pixel (y, x) with the block around right pixel (y, x - d) where
    d = min_disparity + k. Columns whose match falls outside the right image
    get the maximal pixel cost.

    Args:
        left: Left grayscale uint8 image
        right: Right grayscale uint8 image
        min_disparity: Smallest disparity searched
        num_disparities: Number of disparity levels
        block_size: Odd side length of the matching block
        pre_filter_cap: Pre-filter truncation value

    Returns:
        np.ndarray: int32 cost volume of shape (height, width, num_disparities)
    """
    height, width = left.shape
    left_filtered = prefilter_image(left, pre_filter_cap)
    right_filtered = prefilter_image(right, pre_filter_cap)
    left_raw = left.astype(np.int32)
    right_raw = right.astype(np.int32)

    out_of_view_cost = max_pixel_cost(pre_filter_cap)
    volume = np.empty((height, width, num_disparities), dtype=np.int32)
    pixel_cost = np.empty((height, width), dtype=np.float32)

    for k in range(num_disparities):
        d = min_disparity + k
        pixel_cost.fill(out_of_view_cost)

        # left columns x whose match x - d lies inside the right image
        x_start = max(d, 0)
        x_stop = min(width, width + d)
        if x_start < x_stop:
            gradient_diff = np.abs(left_filtered[:, x_start:x_stop]
                                   - right_filtered[:, x_start - d:x_stop - d])
            intensity_diff = np.abs(left_raw[:, x_start:x_stop]
                                    - right_raw[:, x_start - d:x_stop - d]) >> INTENSITY_SHIFT
            pixel_cost[:, x_start:x_stop] = gradient_diff + intensity_diff

        # float32 sums are exact here: the largest block sum stays below 2**24
        block_cost = cv2.boxFilter(pixel_cost, -1, (block_size, block_size),
                                   normalize=False, borderType=cv2.BORDER_REPLICATE)
        volume[:, :, k] = np.rint(block_cost).astype(np.int32)

    logger.debug(f"Cost volume built: shape={volume.shape}, "
                 f"disparities=[{min_disparity}, {min_disparity + num_disparities})")
    return volume
