"""
Error types raised by the disparity pipeline.

All errors derive from ValueError so callers that only guard against bad
input values keep working.
"""

from typing import Any, Tuple


class DisparityError(ValueError):
    """Base class for every error raised by the disparity pipeline."""


class InvalidParameter(DisparityError):
    """A matching parameter violates its documented constraint."""

    def __init__(self, name: str, value: Any, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid parameter {name}={value!r}: {reason}")


class ImageSizeMismatch(DisparityError):
    """Left and right images do not have the same dimensions."""

    def __init__(self, left_shape: Tuple[int, ...], right_shape: Tuple[int, ...]):
        self.left_shape = tuple(left_shape)
        self.right_shape = tuple(right_shape)
        super().__init__(f"Left and right images should be the same size: "
                         f"left={self.left_shape}, right={self.right_shape}")


class EmptyInput(DisparityError):
    """An input image has zero width or height."""


class InvalidImage(DisparityError):
    """An input is not a single channel 8-bit image."""


class DegenerateField(UserWarning):
    """Issued when a disparity field has no usable value range to display."""
