import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import numpy as np
import pytest

pytest.importorskip("PySide6")
pytest.importorskip("PySide6.QtGui")

from PySide6.QtGui import QColor, QImage

from contour_tracking.infrastructure.qt_frames import (
    QImageFrameSource,
    numpy_to_qimage,
    qimage_to_frame,
    qimage_to_numpy,
)


def test_qimage_to_numpy_returns_rgba_bytes_in_order():
    width, height = 3, 2
    image = QImage(width, height, QImage.Format_RGBA8888)
    image.fill(QColor(10, 20, 30, 40))

    result = qimage_to_numpy(image)

    assert result.shape == (height, width, 4)
    assert result.dtype == np.uint8
    expected_pixel = np.array([10, 20, 30, 40], dtype=np.uint8)
    assert np.all(result[0, 0] == expected_pixel)


def test_qimage_to_frame_drops_alpha_and_keeps_rgb():
    frame = np.zeros((5, 7, 3), dtype=np.uint8)
    frame[1:3, 2:5] = (200, 100, 50)

    result = qimage_to_frame(numpy_to_qimage(frame))

    assert result.shape == (5, 7, 3)
    assert np.array_equal(result, frame)


def test_numpy_to_qimage_rejects_unknown_shapes():
    with pytest.raises(ValueError):
        numpy_to_qimage(np.zeros((2, 2, 2), dtype=np.uint8))
    with pytest.raises(ValueError):
        numpy_to_qimage(np.zeros((2, 2), dtype=np.float32))


def test_numpy_to_qimage_accepts_single_channel_frames():
    gray = np.full((3, 5, 1), 77, dtype=np.uint8)

    image = numpy_to_qimage(gray)

    assert image.format() == QImage.Format_Grayscale8
    assert (image.width(), image.height()) == (5, 3)
    assert tuple(qimage_to_frame(image)[0, 0]) == (77, 77, 77)


def test_frame_source_stops_at_end_and_on_null_images():
    image = QImage(4, 4, QImage.Format_RGB888)
    image.fill(QColor(255, 0, 0))
    source = QImageFrameSource([image, QImage()])

    first = source.read()

    assert first is not None and first.shape == (4, 4, 3)
    assert tuple(first[0, 0]) == (255, 0, 0)
    assert source.read() is None
    assert source.read() is None
