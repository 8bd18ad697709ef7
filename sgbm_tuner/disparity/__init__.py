"""
Disparity calculation module for stereo vision processing.

This module contains the semi-global block matching engine, its cost and
aggregation stages and the raw disparity field type.
"""

from .field import DisparityField
from .sgbm_engine import DisparityEngine, SemiGlobalMatcher
from .opencv_matcher import OpenCVMatcher

__all__ = [
    'DisparityField',
    'DisparityEngine',
    'SemiGlobalMatcher',
    'OpenCVMatcher'
]
