"""
Conversion of raw disparity fields into displayable 8-bit images.
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from utils.logger_config import get_logger
from .disparity.field import DisparityField
from .exceptions import DegenerateField

# display value of pixels without a valid disparity
INVALID_DISPLAY_VALUE = 0


@dataclass
class DisplayMap:
    """8-bit grayscale (or channel-replicated RGB) rendering of a disparity field."""

    image: np.ndarray
    value_range: Optional[Tuple[float, float]]
    degenerate: bool = False

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.image.shape


class DisplayMapper:
    """
    Linear min/max rescaling of a disparity field to [0, 255].

    Invalid pixels of a DisparityField are left out of the min/max scan and
    painted with INVALID_DISPLAY_VALUE, so the invalid marker does not
    compress the range of the real disparities. Plain arrays carry no invalid
    marker and are scanned in full.
    """

    def __init__(self, replicate_channels: bool = False, exclude_invalid: bool = True):
        """
        Args:
            replicate_channels: Return an H x W x 3 image with equal channels
            exclude_invalid: Leave invalid pixels out of the min/max scan
        """
        self.replicate_channels = replicate_channels
        self.exclude_invalid = exclude_invalid
        self.logger = get_logger(__name__)

    def normalize(self, field: Union[DisparityField, np.ndarray]) -> DisplayMap:
        """
        Rescale a disparity field to an 8-bit image.

        Each pixel becomes round((value - min) * 255 / (max - min)). When the
        field has no spread (max == min, or no valid pixel) every pixel is
        mapped to 0 and a DegenerateField warning is issued.

        Args:
            field: DisparityField or raw 2-D disparity array

        Returns:
            DisplayMap: uint8 image with the same height and width as the field
        """
        if isinstance(field, DisparityField):
            values = field.data.astype(np.float64)
            mask = field.valid_mask if self.exclude_invalid else np.ones(values.shape, dtype=bool)
        else:
            values = np.asarray(field, dtype=np.float64)
            mask = np.ones(values.shape, dtype=bool)

        if values.ndim != 2:
            raise ValueError(f"Disparity field must be 2-D, got shape {values.shape}")

        image = np.zeros(values.shape, dtype=np.uint8)
        value_range = None
        degenerate = True

        if mask.any():
            low = float(values[mask].min())
            high = float(values[mask].max())
            value_range = (low, high)
            if high > low:
                degenerate = False
                scaled = np.floor((values - low) * 255.0 / (high - low) + 0.5)
                image = np.clip(scaled, 0, 255).astype(np.uint8)
                image[~mask] = INVALID_DISPLAY_VALUE

        if degenerate:
            self.logger.info("Disparity field has no value spread, display map set to 0")
            warnings.warn(f"Degenerate disparity field (range={value_range}); "
                          f"display map is constant", DegenerateField, stacklevel=2)
        else:
            self.logger.debug(f"Display map normalized from range [{value_range[0]:.0f}, {value_range[1]:.0f}]")

        if self.replicate_channels:
            if image.size:
                image = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
            else:
                image = np.zeros(values.shape + (3,), dtype=np.uint8)

        return DisplayMap(image=image, value_range=value_range, degenerate=degenerate)
