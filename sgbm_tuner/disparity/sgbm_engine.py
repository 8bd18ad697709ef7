"""
SGBM (Semi-Global Block Matching) engine for stereo disparity calculation.

This module validates a stereo pair and its matching parameters, then runs
the semi-global matching pipeline: pre-filtered block costs, multi-path
aggregation, uniqueness-checked winner selection, the optional left-right
consistency check and speckle removal.
"""

from typing import Any, Dict, Optional

import numpy as np

from utils.logger_config import get_logger
from ..exceptions import EmptyInput, ImageSizeMismatch, InvalidImage, InvalidParameter
from ..parameters import DISPARITY_SCALE, ParameterSet
from .cost_volume import compute_cost_volume
from .field import DisparityField
from .opencv_matcher import OpenCVMatcher
from .path_aggregation import aggregate_costs, path_directions
from .post_processing import check_left_right_consistency, filter_speckles, select_disparity


class SemiGlobalMatcher:
    """Numpy implementation of semi-global block matching."""

    name = 'native'

    def __init__(self):
        self.logger = get_logger(__name__)

    def compute(self, left: np.ndarray, right: np.ndarray, params: ParameterSet) -> np.ndarray:
        """
        Compute the fixed-point disparity of a validated stereo pair.

        Args:
            left: Left grayscale uint8 image
            right: Right grayscale uint8 image
            params: Validated matching parameters

        Returns:
            np.ndarray: int16 disparity map (16-bit fixed point format)
        """
        invalid_value = (params.min_disparity - 1) * DISPARITY_SCALE

        cost = compute_cost_volume(
            left, right,
            min_disparity=params.min_disparity,
            num_disparities=params.num_disparities,
            block_size=params.block_size,
            pre_filter_cap=params.pre_filter_cap
        )
        aggregated = aggregate_costs(cost, params.p1, params.p2, full_dp=params.full_dp)
        del cost

        disparity = select_disparity(aggregated, params.min_disparity, params.uniqueness_ratio)

        if params.disp12_max_diff >= 0:
            disparity = check_left_right_consistency(
                disparity, aggregated, params.min_disparity, params.disp12_max_diff
            )

        if params.speckle_window_size > 0:
            disparity = filter_speckles(
                disparity, invalid_value, params.speckle_window_size, params.speckle_range
            )

        return disparity

    def describe(self) -> Dict[str, Any]:
        return {'backend': self.name}


_BACKENDS = {
    SemiGlobalMatcher.name: SemiGlobalMatcher,
    OpenCVMatcher.name: OpenCVMatcher,
}


class DisparityEngine:
    """
    Validating front end for the disparity backends.

    Every compute() call is independent: the engine keeps no state from one
    call to the next, so one instance can serve any number of image pairs.
    """

    def __init__(self, backend: str = 'native'):
        """
        Initialize the engine.

        Args:
            backend: 'native' for the numpy implementation, 'opencv' for
                cv2.StereoSGBM

        Raises:
            InvalidParameter: If the backend name is unknown
        """
        if backend not in _BACKENDS:
            raise InvalidParameter('backend', backend, f"must be one of {sorted(_BACKENDS)}")
        self.backend = backend
        self.matcher = _BACKENDS[backend]()
        self.logger = get_logger(__name__)

    def compute(
        self,
        left_image: np.ndarray,
        right_image: np.ndarray,
        params: ParameterSet
    ) -> DisparityField:
        """
        Compute disparity map from stereo image pair.

        All preconditions are checked before any cost is computed.

        Args:
            left_image: Left rectified grayscale image
            right_image: Right rectified grayscale image
            params: Matching parameters

        Returns:
            DisparityField: Fixed-point disparity with invalid pixels set to
            (min_disparity - 1) * 16

        Raises:
            InvalidImage: If an input is not a 2-D uint8 array
            EmptyInput: If an input has zero width or height
            ImageSizeMismatch: If the images differ in size
            InvalidParameter: If the parameters are inconsistent
        """
        self._validate_stereo_images(left_image, right_image)
        # snapshot so later mutations of the caller's object cannot leak into this call
        params = params.copy()
        params.validate(left_image.shape)

        self.logger.info(f"Computing disparity ({self.backend}): "
                         f"size={left_image.shape[1]}x{left_image.shape[0]}, "
                         f"minDisp={params.min_disparity}, numDisp={params.num_disparities}, "
                         f"blockSize={params.block_size}, P1={params.p1}, P2={params.p2}, "
                         f"paths={len(path_directions(params.full_dp))}")

        data = self.matcher.compute(left_image, right_image, params)
        field = DisparityField(
            data=np.asarray(data, dtype=np.int16),
            min_disparity=params.min_disparity,
            num_disparities=params.num_disparities
        )
        self._log_statistics(field)
        return field

    def _validate_stereo_images(self, left_image: np.ndarray, right_image: np.ndarray) -> None:
        """
        Validate stereo image pair for compatibility.

        Raises:
            InvalidImage: If an input is not a single channel uint8 array
            EmptyInput: If an input is empty
            ImageSizeMismatch: If the shapes differ
        """
        for side, image in (('left', left_image), ('right', right_image)):
            if image is None:
                raise InvalidImage(f"{side} image cannot be None")
            if not isinstance(image, np.ndarray) or image.ndim != 2:
                raise InvalidImage(f"{side} image must be a 2-D grayscale array, "
                                   f"got shape {getattr(image, 'shape', None)}")
            if image.dtype != np.uint8:
                raise InvalidImage(f"{side} image must be uint8, got {image.dtype}")

        for side, image in (('left', left_image), ('right', right_image)):
            if image.size == 0:
                raise EmptyInput(f"{side} image is empty: shape={image.shape}")

        if left_image.shape != right_image.shape:
            raise ImageSizeMismatch(left_image.shape, right_image.shape)

    def _log_statistics(self, field: DisparityField) -> None:
        stats = field.statistics()
        if stats['valid_pixels'] > 0:
            disparity_range = stats['disparity_range']
            self.logger.info(f"Disparity computed: "
                             f"valid_pixels={stats['valid_pixels']}/{stats['total_pixels']} "
                             f"({stats['coverage_percentage']:.1f}%), "
                             f"range=[{disparity_range['min']:.1f}, {disparity_range['max']:.1f}]")
        else:
            self.logger.warning("No valid disparity values computed")

    def get_configuration_info(self, params: Optional[ParameterSet] = None) -> Dict[str, Any]:
        """
        Get engine and parameter information, e.g. for printing or saving.

        Returns:
            Dict[str, Any]: Configuration information
        """
        info = dict(self.matcher.describe())
        if params is not None:
            info['parameters'] = params.to_dict()
            info['paths'] = len(path_directions(params.full_dp))
        return info
