import math

import numpy as np
import pytest

from contour_tracking.domain.models.contours import BoundingRect, Contour, RotatedRect
from contour_tracking.domain.services import descriptors


class _FakeBackend:
    """Backend sintético: solo lo necesario para los descriptores."""

    def __init__(self, m00: float = 0.0, rect: BoundingRect = BoundingRect(0, 0, 20, 10)):
        self.m00 = m00
        self.rect = rect
        self.ellipse_calls = 0

    def moments(self, points):
        return {"m00": self.m00, "m10": 3.0 * self.m00, "m01": 4.0 * self.m00}

    def bounding_rect(self, points):
        return self.rect

    def area(self, points):
        return -self.m00

    def perimeter(self, points):
        return 42.0

    def min_area_rect(self, points):
        return RotatedRect(center=(1.0, 2.0), size=(3.0, 4.0), angle=0.0)

    def fit_ellipse(self, points):
        self.ellipse_calls += 1
        return RotatedRect(center=(5.0, 6.0), size=(7.0, 8.0), angle=45.0)


def _contour(n: int, backend) -> Contour:
    pts = np.arange(2 * n, dtype=np.int32).reshape(n, 2)
    return descriptors.build_contour(pts, backend)


def test_zero_area_centroid_falls_back_to_box_center():
    backend = _FakeBackend(m00=0.0)
    collinear = np.array([[0, 0], [10, 0], [20, 0]], dtype=np.int32)

    cx, cy = descriptors.centroid(collinear, backend)

    assert (cx, cy) == (10.0, 5.0)
    assert math.isfinite(cx) and math.isfinite(cy)


def test_centroid_uses_moments_when_area_is_positive():
    backend = _FakeBackend(m00=2.0)

    assert descriptors.centroid(np.zeros((4, 2)), backend) == (3.0, 4.0)


def test_build_contour_reports_absolute_area_and_balance():
    backend = _FakeBackend(m00=2.0, rect=BoundingRect(0, 0, 4, 4))

    contour = _contour(4, backend)

    assert contour.area == 2.0
    assert contour.arc_length == 42.0
    assert contour.centroid == (3.0, 4.0)
    assert descriptors.contour_balance(contour) == (1.0, 2.0)


def test_fit_ellipse_falls_back_below_five_points():
    backend = _FakeBackend(m00=1.0)

    result = descriptors.fit_ellipse(_contour(4, backend), backend)

    assert result == backend.min_area_rect(None)
    assert backend.ellipse_calls == 0


def test_fit_ellipse_with_enough_points():
    backend = _FakeBackend(m00=1.0)

    result = descriptors.fit_ellipse(_contour(5, backend), backend)

    assert result.angle == pytest.approx(45.0)
    assert backend.ellipse_calls == 1


def test_center_is_bounding_box_center():
    assert descriptors.center(BoundingRect(10, 20, 5, 8)) == (12.5, 24.0)
