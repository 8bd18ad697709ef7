"""
Raw disparity field produced by the matching engine.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np

from ..parameters import DISPARITY_SCALE


@dataclass
class DisparityField:
    """
    16-bit signed fixed-point disparity map (4 fractional bits).

    Pixels without a reliable match hold ``invalid_value``, which is one
    level below the smallest searchable disparity and therefore never
    collides with a legal value.
    """

    data: np.ndarray
    min_disparity: int
    num_disparities: int

    @property
    def invalid_value(self) -> int:
        return (self.min_disparity - 1) * DISPARITY_SCALE

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def valid_mask(self) -> np.ndarray:
        return self.data != self.invalid_value

    def to_pixels(self) -> np.ndarray:
        """Disparity in pixels as float32, invalid pixels set to NaN."""
        pixels = self.data.astype(np.float32) / DISPARITY_SCALE
        pixels[~self.valid_mask] = np.nan
        return pixels

    def statistics(self) -> Dict[str, Any]:
        """
        Summarize coverage and value range of the field.

        Returns:
            Dict[str, Any]: Pixel counts, validity ratio, disparity range in
            pixels and a coarse quality level
        """
        valid = self.valid_mask
        total_pixels = int(self.data.size)
        valid_pixels = int(np.count_nonzero(valid))
        validity_ratio = valid_pixels / total_pixels if total_pixels else 0.0

        stats = {
            'total_pixels': total_pixels,
            'valid_pixels': valid_pixels,
            'validity_ratio': validity_ratio,
            'coverage_percentage': 100.0 * validity_ratio,
        }

        if valid_pixels == 0:
            stats.update({'disparity_range': None, 'quality_level': 'failed'})
            return stats

        values = self.data[valid].astype(np.float32) / DISPARITY_SCALE
        stats['disparity_range'] = {
            'min': float(values.min()),
            'max': float(values.max()),
            'mean': float(values.mean()),
            'std': float(values.std()),
        }

        if validity_ratio > 0.8:
            stats['quality_level'] = 'excellent'
        elif validity_ratio > 0.6:
            stats['quality_level'] = 'good'
        elif validity_ratio > 0.4:
            stats['quality_level'] = 'fair'
        else:
            stats['quality_level'] = 'poor'
        return stats
