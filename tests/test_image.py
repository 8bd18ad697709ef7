import cv2
import numpy as np
import pytest

from utils.image import fit_to_window, load_grayscale_image, save_image, to_presentation


def test_color_image_is_loaded_as_grayscale(tmp_path):
    color = np.zeros((12, 20, 3), dtype=np.uint8)
    color[..., 2] = 200
    path = tmp_path / "left.png"
    cv2.imwrite(str(path), color)

    gray = load_grayscale_image(path)

    assert gray.shape == (12, 20)
    assert gray.dtype == np.uint8
    assert np.all(gray == cv2.cvtColor(color, cv2.COLOR_BGR2GRAY))


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_grayscale_image(tmp_path / "missing.png")


def test_undecodable_file_raises(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")

    with pytest.raises(ValueError):
        load_grayscale_image(path)


def test_presentation_is_bgr():
    gray = np.arange(12, dtype=np.uint8).reshape(3, 4)

    plain = to_presentation(gray)
    colored = to_presentation(gray, cv2.COLORMAP_JET)
    from_rgb = to_presentation(cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB), cv2.COLORMAP_JET)

    assert plain.shape == (3, 4, 3)
    assert np.all(plain[..., 0] == gray)
    assert colored.shape == (3, 4, 3)
    np.testing.assert_array_equal(from_rgb, colored)


def test_fit_to_window_keeps_aspect_ratio():
    image = np.zeros((400, 1000), dtype=np.uint8)

    fitted = fit_to_window(image, 500, 500)

    assert fitted.shape == (200, 500)
    assert fit_to_window(image, 2000, 2000) is image


def test_save_image_writes_file(tmp_path):
    path = save_image(np.full((4, 4), 7, dtype=np.uint8), tmp_path / "out", "map.png")

    assert path.exists()
    assert cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)[0, 0] == 7
