"""
Matching parameters for semi-global block matching.

The ParameterSet is mutated one field at a time, as a user moves the
tuner controls. Two fields have an unambiguous nearest legal value and are
coerced by their setters (block size parity, disparity count divisibility);
every other out-of-range value is rejected with InvalidParameter.
Constraints that depend on more than one field, or on the image size, are
checked by validate() right before a computation.
"""

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from .exceptions import InvalidParameter

DISPARITY_SCALE = 16
MIN_BLOCK_SIZE = 5
MAX_BLOCK_SIZE = 255
MIN_PRE_FILTER_CAP = 1
MAX_PRE_FILTER_CAP = 63

_INT16_MIN = -32768
_INT16_MAX = 32767

# OpenCV camelCase names accepted for each field
PARAMETER_ALIASES = {
    'preFilterCap': 'pre_filter_cap',
    'SADWindowSize': 'block_size',
    'blockSize': 'block_size',
    'minDisparity': 'min_disparity',
    'numberOfDisparities': 'num_disparities',
    'numDisparities': 'num_disparities',
    'uniquenessRatio': 'uniqueness_ratio',
    'speckleWindowSize': 'speckle_window_size',
    'speckleRange': 'speckle_range',
    'disp12MaxDiff': 'disp12_max_diff',
    'P1': 'p1',
    'P2': 'p2',
    'fullDP': 'full_dp',
}


def _as_int(name: str, value: Any) -> int:
    # bool is an int subclass, but True is not a meaningful window size
    if isinstance(value, bool):
        raise InvalidParameter(name, value, "expected an integer, got a boolean")
    try:
        as_int = int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(name, value, "expected an integer")
    if as_int != value:
        raise InvalidParameter(name, value, "expected an integer")
    return as_int


@dataclass
class ParameterSet:
    """
    SGBM matching configuration.

    Defaults are the values the interactive tuner starts with.
    """

    pre_filter_cap: int = 42
    block_size: int = 11
    min_disparity: int = -66
    num_disparities: int = 128
    uniqueness_ratio: int = 15
    speckle_window_size: int = 0
    speckle_range: int = 0
    disp12_max_diff: int = -1
    p1: int = 120
    p2: int = 240
    full_dp: bool = False

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_pre_filter_cap(self, value: Any) -> int:
        value = _as_int('pre_filter_cap', value)
        if not MIN_PRE_FILTER_CAP <= value <= MAX_PRE_FILTER_CAP:
            raise InvalidParameter('pre_filter_cap', value,
                                   f"must be within {MIN_PRE_FILTER_CAP} and {MAX_PRE_FILTER_CAP}")
        self.pre_filter_cap = value
        return value

    def set_block_size(self, value: Any) -> int:
        """
        Store the matching window size, coercing even values to value - 1.

        The [5, 255] range and the image-size bound are checked by validate(),
        since the bound changes whenever a new image is loaded.
        """
        value = _as_int('block_size', value)
        if value % 2 == 0:
            value -= 1
        self.block_size = value
        return value

    def set_min_disparity(self, value: Any) -> int:
        self.min_disparity = _as_int('min_disparity', value)
        return self.min_disparity

    def set_num_disparities(self, value: Any) -> int:
        """
        Store the number of disparity levels, rounded down to a multiple of 16.

        Non-positive results are stored as-is and rejected by validate().
        """
        value = _as_int('num_disparities', value)
        value -= value % DISPARITY_SCALE
        self.num_disparities = value
        return value

    def set_uniqueness_ratio(self, value: Any) -> int:
        self.uniqueness_ratio = self._non_negative('uniqueness_ratio', value)
        return self.uniqueness_ratio

    def set_speckle_window_size(self, value: Any) -> int:
        self.speckle_window_size = self._non_negative('speckle_window_size', value)
        return self.speckle_window_size

    def set_speckle_range(self, value: Any) -> int:
        self.speckle_range = self._non_negative('speckle_range', value)
        return self.speckle_range

    def set_disp12_max_diff(self, value: Any) -> int:
        # negative values disable the left-right check
        self.disp12_max_diff = _as_int('disp12_max_diff', value)
        return self.disp12_max_diff

    def set_p1(self, value: Any) -> int:
        self.p1 = self._non_negative('p1', value)
        return self.p1

    def set_p2(self, value: Any) -> int:
        self.p2 = self._non_negative('p2', value)
        return self.p2

    def set_full_dp(self, value: Any) -> bool:
        if isinstance(value, bool):
            self.full_dp = value
        elif _as_int('full_dp', value) in (0, 1):
            self.full_dp = bool(value)
        else:
            raise InvalidParameter('full_dp', value, "expected a boolean or 0/1")
        return self.full_dp

    def set(self, name: str, value: Any) -> Any:
        """
        Apply a parameter-change notification.

        Args:
            name: Field name, either snake_case or the OpenCV camelCase name
            value: New raw value

        Returns:
            The value actually stored, after coercion

        Raises:
            InvalidParameter: If the name is unknown or the value is illegal
        """
        field_name = self.canonical_name(name)
        setter = getattr(self, f"set_{field_name}")
        return setter(value)

    @staticmethod
    def canonical_name(name: str) -> str:
        field_name = PARAMETER_ALIASES.get(name, name)
        if field_name not in _FIELD_NAMES:
            raise InvalidParameter(name, None, "unknown parameter name")
        return field_name

    @staticmethod
    def _non_negative(name: str, value: Any) -> int:
        value = _as_int(name, value)
        if value < 0:
            raise InvalidParameter(name, value, "must be non-negative")
        return value

    # ------------------------------------------------------------------
    # Image-size dependent bound
    # ------------------------------------------------------------------

    @staticmethod
    def max_block_size(width: int, height: int) -> int:
        """Largest block size allowed for an image, floored at the minimum window."""
        return max(min(MAX_BLOCK_SIZE, width, height), MIN_BLOCK_SIZE)

    def clamp_block_size(self, max_value: int) -> int:
        """Re-clamp the block size after the permissible maximum changed."""
        if self.block_size > max_value:
            self.set_block_size(max_value)
        return self.block_size

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, image_shape: Optional[Tuple[int, ...]] = None) -> None:
        """
        Check every constraint, including those spanning several fields.

        Args:
            image_shape: (height, width) of the images about to be matched

        Raises:
            InvalidParameter: On the first violated constraint
        """
        if not MIN_PRE_FILTER_CAP <= self.pre_filter_cap <= MAX_PRE_FILTER_CAP:
            raise InvalidParameter('pre_filter_cap', self.pre_filter_cap,
                                   f"must be within {MIN_PRE_FILTER_CAP} and {MAX_PRE_FILTER_CAP}")

        if self.block_size % 2 == 0:
            raise InvalidParameter('block_size', self.block_size, "must be odd")
        if not MIN_BLOCK_SIZE <= self.block_size <= MAX_BLOCK_SIZE:
            raise InvalidParameter('block_size', self.block_size,
                                   f"must be within {MIN_BLOCK_SIZE} and {MAX_BLOCK_SIZE}")
        if image_shape is not None:
            height, width = image_shape[:2]
            if self.block_size > min(width, height):
                raise InvalidParameter('block_size', self.block_size,
                                       f"must not be larger than the image ({width}x{height})")

        if self.num_disparities <= 0 or self.num_disparities % DISPARITY_SCALE != 0:
            raise InvalidParameter('num_disparities', self.num_disparities,
                                   "must be positive and divisible by 16")

        # the invalid marker and the largest disparity must both fit the 16-bit output
        lowest = (self.min_disparity - 1) * DISPARITY_SCALE
        highest = (self.min_disparity + self.num_disparities) * DISPARITY_SCALE
        if lowest < _INT16_MIN or highest > _INT16_MAX:
            raise InvalidParameter('min_disparity', self.min_disparity,
                                   "disparity range does not fit the 16-bit fixed-point output")

        for name in ('uniqueness_ratio', 'speckle_window_size', 'speckle_range', 'p1', 'p2'):
            if getattr(self, name) < 0:
                raise InvalidParameter(name, getattr(self, name), "must be non-negative")

        if self.p2 <= self.p1:
            raise InvalidParameter('p2', self.p2, f"must be greater than P1 ({self.p1})")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    @property
    def max_disparity(self) -> int:
        """Exclusive upper end of the searched disparity range."""
        return self.min_disparity + self.num_disparities

    def copy(self) -> 'ParameterSet':
        return ParameterSet(**self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any]) -> 'ParameterSet':
        """
        Build a ParameterSet from defaults overridden by a mapping.

        Values go through the same setters as interactive changes, so the
        mapping may use either naming convention.
        """
        params = cls()
        for name, value in mapping.items():
            params.set(name, value)
        return params


_FIELD_NAMES = frozenset(f.name for f in fields(ParameterSet))
