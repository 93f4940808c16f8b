import numpy as np
import pytest

from core.preprocess import frame_to_tensor
from domain.enums import PixelFormat
from domain.errors import TransformError
from domain.models import Frame


def _solid(color, fmt=PixelFormat.BGR, shape=(30, 40)):
    pixels = np.zeros(shape + (len(color),), dtype=np.uint8)
    pixels[:] = color
    return Frame.from_buffer(pixels, fmt)


def test_output_shape_and_range():
    tensor = frame_to_tensor(_solid((255, 255, 255)), size=16)
    assert tensor.shape == (16, 16, 3)
    assert tensor.dtype == np.float32
    assert np.allclose(tensor, 1.0)


def test_bgr_is_converted_to_rgb():
    # pure blue in BGR order
    tensor = frame_to_tensor(_solid((255, 0, 0)), size=8)
    assert np.allclose(tensor[..., 0], 0.0)
    assert np.allclose(tensor[..., 2], 1.0)


def test_rgb_is_left_as_is():
    tensor = frame_to_tensor(_solid((255, 0, 0), PixelFormat.RGB), size=8)
    assert np.allclose(tensor[..., 0], 1.0)


def test_alpha_and_gray_formats():
    bgra = frame_to_tensor(_solid((0, 0, 255, 128), PixelFormat.BGRA), size=8)
    assert bgra.shape == (8, 8, 3)
    assert np.allclose(bgra[..., 0], 1.0)

    gray = Frame.from_buffer(np.full((10, 10), 51, dtype=np.uint8), PixelFormat.GRAY)
    tensor = frame_to_tensor(gray, size=8)
    assert tensor.shape == (8, 8, 3)
    assert np.allclose(tensor, 0.2)


def test_mean_and_std_are_applied():
    tensor = frame_to_tensor(_solid((100, 100, 100)), size=4, mean=50.0, std=25.0)
    assert np.allclose(tensor, 2.0)


def test_zero_std_is_rejected():
    with pytest.raises(TransformError):
        frame_to_tensor(_solid((1, 2, 3)), size=4, std=0.0)


def test_mismatched_pixels_raise_transform_error():
    frame = Frame.from_buffer(np.zeros((4, 4, 2), dtype=np.uint8), PixelFormat.BGR)
    with pytest.raises(TransformError):
        frame_to_tensor(frame, size=4)
