import math

import numpy as np
import pytest

cv2 = pytest.importorskip("cv2")

from contour_tracking.domain.services.quad_fit import MAX_ITERATIONS, fit_quad, search_quad
from contour_tracking.infrastructure.cv_geometry import OpenCvGeometry


def _circle(n: int = 100, radius: float = 100.0, cx: float = 200.0, cy: float = 200.0) -> np.ndarray:
    t = np.linspace(0.0, 2.0 * math.pi, n, endpoint=False)
    pts = np.stack([cx + radius * np.cos(t), cy + radius * np.sin(t)], axis=1)
    return pts.astype(np.float32)


def _as_set(points):
    return {(int(round(x)), int(round(y))) for x, y in np.asarray(points).reshape(-1, 2)}


@pytest.fixture()
def geometry():
    return OpenCvGeometry()


def test_circle_hull_fits_to_four_points(geometry):
    hull = geometry.convex_hull(_circle())
    original = hull.copy()

    fit = search_quad(hull, geometry.simplify)

    assert fit.converged
    assert len(fit.points) == 4
    assert fit.calls <= MAX_ITERATIONS
    assert np.array_equal(hull, original)


def test_square_with_near_collinear_point_keeps_true_corners(geometry):
    hull = np.array([[0, 0], [50, -1], [100, 0], [100, 100], [0, 100]], dtype=np.int32)

    quad = fit_quad(hull, geometry.simplify)

    assert len(quad) == 4
    assert _as_set(quad) == {(0, 0), (100, 0), (100, 100), (0, 100)}


def test_fit_is_idempotent_on_its_output(geometry):
    hull = geometry.convex_hull(_circle())
    quad = fit_quad(hull, geometry.simplify)

    again = fit_quad(quad, geometry.simplify)

    assert np.array_equal(again, quad)


def test_smaller_nested_hull_needs_no_larger_epsilon(geometry):
    inner = geometry.convex_hull(_circle(radius=50.0))
    outer = geometry.convex_hull(_circle(radius=100.0))

    fit_inner = search_quad(inner, geometry.simplify)
    fit_outer = search_quad(outer, geometry.simplify)

    assert fit_inner.converged and fit_outer.converged
    assert fit_inner.epsilon <= fit_outer.epsilon
