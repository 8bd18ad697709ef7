import cv2
import numpy as np
import pytest

from sgbm_tuner.parameters import ParameterSet


def make_stereo_pair(height=64, width=64, shift=0, seed=0):
    """
    Random-texture stereo pair whose true disparity is ``shift`` everywhere.

    Left pixel x shows the same scene point as right pixel x - shift.
    """
    rng = np.random.default_rng(seed)
    base = rng.integers(0, 256, size=(height, width + abs(shift)), dtype=np.uint8)
    base = cv2.GaussianBlur(base, (3, 3), 0)
    if shift >= 0:
        left = base[:, :width]
        right = base[:, shift:shift + width]
    else:
        left = base[:, -shift:-shift + width]
        right = base[:, :width]
    return np.ascontiguousarray(left), np.ascontiguousarray(right)


def make_params(**overrides):
    """Small, fast matching configuration for synthetic pairs."""
    values = dict(
        pre_filter_cap=31,
        block_size=5,
        min_disparity=0,
        num_disparities=16,
        uniqueness_ratio=10,
        speckle_window_size=0,
        speckle_range=0,
        disp12_max_diff=-1,
        p1=8 * 5 * 5,
        p2=32 * 5 * 5,
        full_dp=False,
    )
    values.update(overrides)
    return ParameterSet(**values)


@pytest.fixture
def stereo_pair():
    return make_stereo_pair


@pytest.fixture
def params():
    return make_params
