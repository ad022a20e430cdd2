# src/contour_tracking/domain/services/descriptors.py
"""Descriptores por contorno construidos sobre un GeometryBackend."""

from __future__ import annotations

from typing import List, Tuple

import numpy as np

from contour_tracking.domain.models.contours import (
    BoundingRect,
    Circle,
    Contour,
    ConvexityDefect,
    Point2f,
    RotatedRect,
)
from contour_tracking.domain.services.geometry import (
    GeometryBackend,
    as_points,
    balance,
    centroid_from_moments,
)
from contour_tracking.domain.services.quad_fit import fit_quad

# fitEllipse necesita al menos 5 puntos
MIN_ELLIPSE_POINTS = 5


def center(rect: BoundingRect) -> Point2f:
    """Centro del bounding box (el más estable)."""
    return rect.center


def centroid(points: np.ndarray, backend: GeometryBackend) -> Point2f:
    """
    Centro de masa (menos estable). Un contorno de área nula (un punto o
    puntos colineales) no tiene centro de masa definido: se devuelve el
    centro del bounding box.
    """
    c = centroid_from_moments(backend.moments(points))
    if c is None:
        return center(backend.bounding_rect(points))
    return c


def average(points: np.ndarray, backend: GeometryBackend) -> Point2f:
    """Promedio de vértices (el menos estable)."""
    return backend.mean(points)


def contour_balance(contour: Contour) -> Tuple[float, float]:
    """Diferencia centroide - centro del bounding box."""
    return balance(contour.centroid, center(contour.bounding_rect))


def build_contour(points: np.ndarray, backend: GeometryBackend) -> Contour:
    pts = as_points(points)
    rect = backend.bounding_rect(pts)
    return Contour(
        points=pts,
        bounding_rect=rect,
        # el signo depende de si OpenCV lo considera hueco
        area=abs(backend.area(pts)),
        centroid=centroid(pts, backend),
        arc_length=backend.perimeter(pts),
        hole=False,
    )


def convex_hull(contour: Contour, backend: GeometryBackend) -> np.ndarray:
    return backend.convex_hull(contour.points)


def convexity_defects(contour: Contour, backend: GeometryBackend) -> List[ConvexityDefect]:
    return backend.convexity_defects(contour.points)


def min_area_rect(contour: Contour, backend: GeometryBackend) -> RotatedRect:
    return backend.min_area_rect(contour.points)


def min_enclosing_circle(contour: Contour, backend: GeometryBackend) -> Circle:
    return backend.min_enclosing_circle(contour.points)


def fit_ellipse(contour: Contour, backend: GeometryBackend) -> RotatedRect:
    if contour.n_points < MIN_ELLIPSE_POINTS:
        return backend.min_area_rect(contour.points)
    return backend.fit_ellipse(contour.points)


def fit_contour_quad(contour: Contour, backend: GeometryBackend) -> np.ndarray:
    """Cuadrilátero que aproxima el hull convexo del contorno."""
    hull = backend.convex_hull(contour.points)
    return fit_quad(hull, backend.simplify)
