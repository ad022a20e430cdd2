import numpy as np
import pytest

cv2 = pytest.importorskip("cv2")

from contour_tracking.domain.models.contours import BoundingRect
from contour_tracking.infrastructure.cv_geometry import OpenCvGeometry

SQUARE = np.array([[0, 0], [10, 0], [10, 10], [0, 10]], dtype=np.int32)


@pytest.fixture()
def geometry():
    return OpenCvGeometry()


def test_basic_measures_on_square(geometry):
    assert geometry.area(SQUARE) == pytest.approx(100.0)
    assert geometry.perimeter(SQUARE) == pytest.approx(40.0)
    assert geometry.bounding_rect(SQUARE) == BoundingRect(0, 0, 11, 11)
    assert geometry.mean(SQUARE) == (5.0, 5.0)
    m = geometry.moments(SQUARE)
    assert m["m10"] / m["m00"] == pytest.approx(5.0)


def test_accepts_opencv_shaped_and_float_points(geometry):
    as_cv = SQUARE.reshape(-1, 1, 2)
    as_float = SQUARE.astype(np.float64)

    assert geometry.area(as_cv) == pytest.approx(100.0)
    assert geometry.area(as_float) == pytest.approx(100.0)
    assert geometry.simplify(as_float, 1.0).shape == (4, 2)


def test_empty_points_are_harmless(geometry):
    empty = np.zeros((0, 2), dtype=np.int32)

    assert geometry.area(empty) == 0.0
    assert geometry.perimeter(empty) == 0.0
    assert geometry.convex_hull(empty).shape == (0, 2)
    assert geometry.simplify(empty, 4.0).shape == (0, 2)
    assert geometry.bounding_rect(empty) == BoundingRect(0, 0, 0, 0)


def test_convexity_defects_need_enough_points(geometry):
    triangle = np.array([[0, 0], [10, 0], [5, 8]], dtype=np.int32)

    assert geometry.convexity_defects(triangle) == []
    assert geometry.convexity_defects(SQUARE) == []


def test_extract_contours_returns_read_only_points(geometry):
    binary = np.zeros((50, 50), dtype=np.uint8)
    binary[10:20, 10:30] = 255

    contours = geometry.extract_contours(binary)

    assert len(contours) == 1
    assert contours[0].shape == (4, 2)
    assert not contours[0].flags.writeable
    assert binary[10:20, 10:30].all()
