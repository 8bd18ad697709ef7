"""
Image file helpers for the tuner host.

Decoding, color conversion and presentation live here so the matching core
only ever sees 2-D uint8 arrays.
"""

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from utils.logger_config import get_logger

logger = get_logger(__name__)


def load_grayscale_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image file as an 8-bit grayscale array.

    The file is decoded as color and converted, so color photographs and
    grayscale files are handled the same way.

    Args:
        path: Image file path

    Returns:
        np.ndarray: uint8 array of shape (height, width)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file cannot be decoded as an image
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Failed to decode image: {path}")

    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    logger.info(f"Loaded {path.name}: {gray.shape[1]}x{gray.shape[0]}")
    return gray


def to_presentation(image: np.ndarray, colormap: Optional[int] = None) -> np.ndarray:
    """
    Prepare an 8-bit display map for an OpenCV window.

    Args:
        image: uint8 grayscale (H x W) or RGB (H x W x 3) display map
        colormap: Optional OpenCV colormap id for false coloring

    Returns:
        np.ndarray: BGR image ready for cv2.imshow / cv2.imwrite
    """
    if image.ndim == 3:
        if colormap is None:
            return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        image = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)

    if colormap is not None:
        return cv2.applyColorMap(image, colormap)
    return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)


def fit_to_window(image: np.ndarray, max_width: int, max_height: int) -> np.ndarray:
    """Downscale an image, keeping its aspect ratio, so it fits the given box."""
    height, width = image.shape[:2]
    scale = min(max_width / width, max_height / height, 1.0)
    if scale >= 1.0:
        return image
    size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
    return cv2.resize(image, size, interpolation=cv2.INTER_AREA)


def save_image(image: np.ndarray, folder: Union[str, Path], name: str) -> Path:
    """
    Write an image into a folder.

    Returns:
        Path: Written file

    Raises:
        IOError: If OpenCV fails to write the file
    """
    output_path = Path(folder) / name
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(output_path), image):
        raise IOError(f"Failed to write image: {output_path}")
    logger.info(f"Saved image: {output_path}")
    return output_path
