"""
Interactive parameter tuning for semi-global block matching.

The core is UI-free: ParameterSet holds the matching configuration,
DisparityEngine turns a rectified grayscale pair into a fixed-point
disparity field and DisplayMapper renders that field as an 8-bit image.
TunerSession wires the three together for interactive hosts.
"""

from .exceptions import (
    DegenerateField,
    DisparityError,
    EmptyInput,
    ImageSizeMismatch,
    InvalidImage,
    InvalidParameter,
)
from .parameters import ParameterSet
from .disparity import DisparityEngine, DisparityField
from .display_mapper import DisplayMap, DisplayMapper
from .tuner import TunerResult, TunerSession

__all__ = [
    'DegenerateField',
    'DisparityError',
    'EmptyInput',
    'ImageSizeMismatch',
    'InvalidImage',
    'InvalidParameter',
    'ParameterSet',
    'DisparityEngine',
    'DisparityField',
    'DisplayMap',
    'DisplayMapper',
    'TunerResult',
    'TunerSession',
]
