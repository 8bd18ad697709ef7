"""
Slider definitions for tuner hosts.

Slider widgets usually only offer non-negative integer positions, so each
control maps a position to a parameter value through an offset.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from .parameters import MAX_BLOCK_SIZE, MAX_PRE_FILTER_CAP, MIN_BLOCK_SIZE, MIN_PRE_FILTER_CAP


@dataclass(frozen=True)
class SliderControl:
    """A parameter exposed as a slider with range [minimum, maximum]."""

    label: str
    parameter: str
    minimum: int
    maximum: int

    @property
    def positions(self) -> int:
        """Largest slider position."""
        return self.maximum - self.minimum

    def to_value(self, position: int) -> int:
        return self.minimum + int(position)

    def to_position(self, value: Any) -> int:
        position = int(value) - self.minimum
        return max(0, min(self.positions, position))

    def with_maximum(self, maximum: int) -> 'SliderControl':
        return SliderControl(self.label, self.parameter, self.minimum, max(self.minimum, maximum))


SLIDER_CONTROLS: Tuple[SliderControl, ...] = (
    SliderControl('Pre filter cap', 'pre_filter_cap', MIN_PRE_FILTER_CAP, MAX_PRE_FILTER_CAP),
    SliderControl('SAD window size', 'block_size', MIN_BLOCK_SIZE, MAX_BLOCK_SIZE),
    SliderControl('Min disparity', 'min_disparity', -256, 256),
    SliderControl('Num disparities', 'num_disparities', 16, 512),
    SliderControl('Uniqueness ratio', 'uniqueness_ratio', 0, 100),
    SliderControl('Speckle window', 'speckle_window_size', 0, 500),
    SliderControl('Speckle range', 'speckle_range', 0, 64),
    SliderControl('Disp12 max diff', 'disp12_max_diff', -1, 128),
    SliderControl('P1', 'p1', 0, 5000),
    SliderControl('P2', 'p2', 0, 20000),
    SliderControl('Full DP', 'full_dp', 0, 1),
)


def control_for(parameter: str) -> SliderControl:
    for control in SLIDER_CONTROLS:
        if control.parameter == parameter:
            return control
    raise KeyError(f"No slider control for parameter: {parameter}")
