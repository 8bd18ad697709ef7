"""
OpenCV HighGUI front end for the tuner.

One window holds a trackbar per matching parameter and shows the current
disparity map; a second window shows the loaded stereo pair. Trackbar
callbacks only record the new position; the event loop applies all pending
changes once per frame, so dragging a slider triggers one recomputation per
frame instead of one per intermediate position.

Keys:
    l / r   load the left / right image with a file dialog
    s       save the current disparity map
    p       log the current parameters
    q / Esc quit
"""

from pathlib import Path
from typing import Any, Dict, Optional

import cv2
import numpy as np
import tkinter as tk
from tkinter import filedialog

from utils.image import fit_to_window, load_grayscale_image, save_image, to_presentation
from utils.logger_config import get_logger
from .controls import SLIDER_CONTROLS, SliderControl, control_for
from .exceptions import DisparityError
from .tuner import TunerResult, TunerSession

PREVIEW_MAX_WIDTH = 960
PREVIEW_MAX_HEIGHT = 540
IMAGE_FILE_TYPES = [("Images", "*.png *.jpg *.jpeg *.bmp *.tif *.tiff *.ppm *.pgm"), ("All files", "*")]


def ask_image_path(title: str) -> Optional[str]:
    """Prompt for an image file; returns None when the dialog is cancelled."""
    root = tk.Tk()
    root.withdraw()
    try:
        filename = filedialog.askopenfilename(title=title, initialdir=str(Path.home()),
                                              filetypes=IMAGE_FILE_TYPES)
    finally:
        root.destroy()
    return filename or None


class TunerWindow:
    """Interactive tuner built on a TunerSession."""

    def __init__(
        self,
        session: TunerSession,
        window_name: str = 'SGBM Tuner',
        colormap: Optional[int] = None,
        result_folder_factory=None
    ):
        """
        Args:
            session: Session that performs the computations
            window_name: Title of the control/disparity window
            colormap: Optional OpenCV colormap for presenting the map
            result_folder_factory: Callable returning the folder for saved maps
        """
        self.session = session
        self.window_name = window_name
        self.pair_window_name = f"{window_name} - stereo pair"
        self.colormap = colormap
        self.result_folder_factory = result_folder_factory
        self.logger = get_logger(__name__)

        self.controls: Dict[str, SliderControl] = {c.parameter: c for c in SLIDER_CONTROLS}
        self.pending: Dict[str, Any] = {}
        self.message: Optional[str] = None
        self.saved_count = 0

        self.session.on_result = self._on_result
        self.session.on_error = self._on_error

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _create_windows(self) -> None:
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        cv2.namedWindow(self.pair_window_name, cv2.WINDOW_NORMAL)
        params = self.session.params.to_dict()
        for control in SLIDER_CONTROLS:
            cv2.createTrackbar(control.label, self.window_name,
                               control.to_position(params[control.parameter]),
                               control.positions, self._make_callback(control.parameter))
        self.message = "Press 'l' / 'r' to load the left / right image"

    def _make_callback(self, parameter: str):
        def on_change(position: int) -> None:
            value = self.controls[parameter].to_value(position)
            # positions written back by _snap_slider arrive here too
            if value != getattr(self.session.params, parameter):
                self.pending[parameter] = value
        return on_change

    def _snap_slider(self, parameter: str, value: Any) -> None:
        control = self.controls[parameter]
        cv2.setTrackbarPos(control.label, self.window_name, control.to_position(value))

    def _update_block_size_slider(self) -> None:
        control = control_for('block_size').with_maximum(self.session.block_size_limit)
        self.controls['block_size'] = control
        cv2.setTrackbarMax(control.label, self.window_name, control.positions)
        self._snap_slider('block_size', self.session.params.block_size)

    # ------------------------------------------------------------------
    # Image loading
    # ------------------------------------------------------------------

    def load_image(self, side: str, path: Optional[str] = None) -> None:
        """
        Load the left or right image, prompting for a file when no path is given.
        """
        if path is None:
            path = ask_image_path(f"Select {side} picture file")
            if path is None:
                return

        try:
            image = load_grayscale_image(path)
        except (FileNotFoundError, ValueError) as e:
            self.logger.error(str(e))
            self.message = str(e)
            return

        if side == 'left':
            self.session.set_left_image(image)
        else:
            self.session.set_right_image(image)
        self._update_block_size_slider()
        self._show_pair()

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def run(self, left_path: Optional[str] = None, right_path: Optional[str] = None) -> None:
        self._create_windows()
        if left_path:
            self.load_image('left', left_path)
        if right_path:
            self.load_image('right', right_path)
        self._show_disparity()

        while True:
            self._apply_pending()
            key = cv2.waitKey(30) & 0xFF
            if key in (ord('q'), 27):
                break
            elif key == ord('l'):
                self.load_image('left')
            elif key == ord('r'):
                self.load_image('right')
            elif key == ord('s'):
                self.save_current()
            elif key == ord('p'):
                self.print_parameters()

        cv2.destroyAllWindows()
        self.logger.info("Tuner closed")

    def _apply_pending(self) -> None:
        if not self.pending:
            return
        changes, self.pending = self.pending, {}
        try:
            stored = self.session.apply_changes(changes)
        except DisparityError as e:
            self.logger.warning(str(e))
            self.message = str(e)
            stored = {}
            self._show_disparity()

        for parameter in changes:
            value = stored.get(parameter, getattr(self.session.params, parameter))
            if value != changes[parameter]:
                self._snap_slider(parameter, value)

    # ------------------------------------------------------------------
    # Session callbacks and display
    # ------------------------------------------------------------------

    def _on_result(self, result: TunerResult) -> None:
        self.message = None
        self._show_disparity()

    def _on_error(self, error: DisparityError) -> None:
        self.message = f"Can't compute disparity map: {error}"
        self._show_disparity()

    def _show_disparity(self) -> None:
        result = self.session.last_result
        if result is None or self.message:
            canvas = self._message_canvas(self.message or "Load both images to compute a disparity map")
        else:
            canvas = to_presentation(result.display.image, self.colormap)
        cv2.imshow(self.window_name, fit_to_window(canvas, PREVIEW_MAX_WIDTH, PREVIEW_MAX_HEIGHT))

    def _show_pair(self) -> None:
        images = [img for img in (self.session.left_image, self.session.right_image) if img is not None]
        if not images:
            return
        height = min(img.shape[0] for img in images)
        row = [cv2.resize(img, (int(round(img.shape[1] * height / img.shape[0])), height)) for img in images]
        pair = np.hstack(row)
        cv2.imshow(self.pair_window_name, fit_to_window(pair, 2 * PREVIEW_MAX_WIDTH, PREVIEW_MAX_HEIGHT))

    @staticmethod
    def _message_canvas(text: str) -> np.ndarray:
        canvas = np.zeros((120, 900, 3), dtype=np.uint8)
        cv2.putText(canvas, text[:90], (10, 65), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1, cv2.LINE_AA)
        return canvas

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def save_current(self) -> Optional[Path]:
        result = self.session.last_result
        if result is None:
            self.logger.warning("No disparity map to save")
            return None
        if self.result_folder_factory is None:
            self.logger.warning("No result folder configured, map not saved")
            return None

        self.saved_count += 1
        image = to_presentation(result.display.image, self.colormap)
        return save_image(image, self.result_folder_factory(), f"disparity_{self.saved_count:03d}.png")

    def print_parameters(self) -> None:
        info = self.session.engine.get_configuration_info(self.session.params)
        self.logger.info(f"Current parameters: {info['parameters']}")
        if self.session.last_result is not None:
            stats = self.session.last_result.field.statistics()
            self.logger.info(f"Current map: {stats['coverage_percentage']:.1f}% valid, "
                             f"quality={stats['quality_level']}")
