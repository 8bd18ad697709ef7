"""
Host-agnostic tuning session.

A TunerSession owns the stereo pair and the current ParameterSet and turns
image loads and parameter-change notifications into fresh disparity maps.
It knows nothing about widgets: a GUI, a script or a test drives it through
plain method calls and receives results through callbacks.

The session is single-threaded. Hosts that receive notifications faster
than a map can be computed (slider drags) should coalesce them before
calling in.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from utils.logger_config import get_logger
from .disparity import DisparityEngine, DisparityField
from .display_mapper import DisplayMap, DisplayMapper
from .exceptions import DisparityError
from .parameters import MAX_BLOCK_SIZE, ParameterSet


@dataclass
class TunerResult:
    """One computed disparity map and the parameters that produced it."""

    field: DisparityField
    display: DisplayMap
    parameters: Dict[str, Any]


class TunerSession:
    """Coordinates ParameterSet, DisparityEngine and DisplayMapper for a tuner host."""

    def __init__(
        self,
        params: Optional[ParameterSet] = None,
        engine: Optional[DisparityEngine] = None,
        mapper: Optional[DisplayMapper] = None,
        on_result: Optional[Callable[[TunerResult], None]] = None,
        on_error: Optional[Callable[[DisparityError], None]] = None
    ):
        self.params = params if params is not None else ParameterSet()
        self.engine = engine if engine is not None else DisparityEngine()
        self.mapper = mapper if mapper is not None else DisplayMapper()
        self.on_result = on_result
        self.on_error = on_error
        self.logger = get_logger(__name__)

        self.left_image: Optional[np.ndarray] = None
        self.right_image: Optional[np.ndarray] = None
        self.last_result: Optional[TunerResult] = None
        self.last_error: Optional[DisparityError] = None
        self.block_size_limit = MAX_BLOCK_SIZE

    # ------------------------------------------------------------------
    # Image loading
    # ------------------------------------------------------------------

    def set_left_image(self, image: np.ndarray) -> Optional[TunerResult]:
        self.left_image = image
        self.logger.info(f"Left image set: shape={getattr(image, 'shape', None)}")
        self._update_block_size_limit()
        return self.recompute()

    def set_right_image(self, image: np.ndarray) -> Optional[TunerResult]:
        self.right_image = image
        self.logger.info(f"Right image set: shape={getattr(image, 'shape', None)}")
        self._update_block_size_limit()
        return self.recompute()

    def _update_block_size_limit(self) -> None:
        """
        Re-derive the block size bound from every loaded image.

        The window may not be larger than the smaller side of either image;
        the current block size is clamped when it exceeds the new bound.
        """
        limit = MAX_BLOCK_SIZE
        for image in (self.left_image, self.right_image):
            if image is not None and getattr(image, 'ndim', 0) >= 2:
                height, width = image.shape[:2]
                limit = min(limit, ParameterSet.max_block_size(width, height))
        self.block_size_limit = limit

        previous = self.params.block_size
        if self.params.clamp_block_size(limit) != previous:
            self.logger.info(f"Block size clamped from {previous} to {self.params.block_size} "
                             f"(limit {limit})")

    # ------------------------------------------------------------------
    # Parameter changes
    # ------------------------------------------------------------------

    def on_parameter_changed(self, name: str, value: Any) -> Any:
        """
        Apply a parameter-change notification and recompute.

        Args:
            name: Parameter name (snake_case or OpenCV camelCase)
            value: Raw new value, e.g. a slider position

        Returns:
            The value actually stored, so a host can snap its control to it

        Raises:
            InvalidParameter: If the value is rejected by the setter
        """
        field_name = ParameterSet.canonical_name(name)
        stored = self._store(field_name, value)
        self.recompute()
        return stored

    def apply_changes(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply several notifications at once and recompute a single time.

        Used by hosts that coalesce rapid control changes. A rejected value
        raises InvalidParameter; values applied before it stay stored and no
        recomputation happens.

        Returns:
            Dict[str, Any]: Stored value per canonical field name
        """
        stored = {}
        for name, value in changes.items():
            field_name = ParameterSet.canonical_name(name)
            stored[field_name] = self._store(field_name, value)
        if stored:
            self.recompute()
        return stored

    def _store(self, field_name: str, value: Any) -> Any:
        stored = self.params.set(field_name, value)
        if field_name == 'block_size':
            stored = self.params.clamp_block_size(self.block_size_limit)
        self.logger.debug(f"Parameter {field_name} set to {stored}")
        return stored

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    @property
    def ready(self) -> bool:
        return self.left_image is not None and self.right_image is not None

    def recompute(self) -> Optional[TunerResult]:
        """
        Compute a new disparity map once both images are loaded.

        Errors are logged and reported through ``on_error``; the previous
        result is dropped so a stale map is never shown for new inputs.

        Returns:
            TunerResult or None when not ready or the computation failed
        """
        if not self.ready:
            return None

        try:
            result = self._run(self.params)
        except DisparityError as e:
            self.logger.error(f"Can't compute disparity map: {e}")
            self.last_result = None
            self.last_error = e
            if self.on_error is not None:
                self.on_error(e)
            return None

        self.last_result = result
        self.last_error = None
        if self.on_result is not None:
            self.on_result(result)
        return result

    def _run(self, params: ParameterSet) -> TunerResult:
        field = self.engine.compute(self.left_image, self.right_image, params)
        display = self.mapper.normalize(field)
        return TunerResult(field=field, display=display, parameters=params.to_dict())

    def sweep(self, name: str, values: Iterable[Any]) -> List[Tuple[Any, TunerResult]]:
        """
        Compute one map per value of a single parameter.

        The sweep works on a copy of the current parameters and does not
        notify the callbacks; errors propagate to the caller.

        Args:
            name: Parameter to vary
            values: Raw values to try, each passed through the setter

        Returns:
            List of (stored value, TunerResult) pairs
        """
        if not self.ready:
            raise RuntimeError("Both images must be loaded before a parameter sweep")

        params = self.params.copy()
        results = []
        for value in values:
            stored = params.set(name, value)
            results.append((stored, self._run(params)))
            self.logger.info(f"Sweep {name}={stored}: "
                             f"{results[-1][1].field.statistics()['coverage_percentage']:.1f}% valid")
        return results
