"""Capability interface over the vision backend (contours, hulls, moments...)."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Tuple

import numpy as np

from contour_tracking.domain.models.contours import (
    BoundingRect,
    Circle,
    ConvexityDefect,
    Point2f,
    RotatedRect,
)


class GeometryBackend(Protocol):
    """
    Primitivas geométricas que el dominio necesita. Los puntos siempre
    son arreglos (N, 2); ninguna operación modifica su entrada.
    """

    def extract_contours(
        self, binary: np.ndarray, *, find_holes: bool = False, simplify: bool = True
    ) -> List[np.ndarray]:
        ...

    def area(self, points: np.ndarray) -> float:
        ...

    def perimeter(self, points: np.ndarray) -> float:
        ...

    def convex_hull(self, points: np.ndarray) -> np.ndarray:
        ...

    def simplify(self, points: np.ndarray, epsilon: float) -> np.ndarray:
        ...

    def moments(self, points: np.ndarray) -> Dict[str, float]:
        ...

    def bounding_rect(self, points: np.ndarray) -> BoundingRect:
        ...

    def mean(self, points: np.ndarray) -> Point2f:
        ...

    def convexity_defects(self, points: np.ndarray) -> List[ConvexityDefect]:
        ...

    def min_area_rect(self, points: np.ndarray) -> RotatedRect:
        ...

    def min_enclosing_circle(self, points: np.ndarray) -> Circle:
        ...

    def fit_ellipse(self, points: np.ndarray) -> RotatedRect:
        ...


def as_points(points) -> np.ndarray:
    """Normaliza (N,1,2) / listas de tuplas a un arreglo (N, 2)."""
    arr = np.asarray(points)
    if arr.size == 0:
        return arr.reshape(0, 2)
    return arr.reshape(-1, 2)


def centroid_from_moments(moments: Dict[str, float]) -> Optional[Point2f]:
    """Centro de masa; None si el área (m00) es cero."""
    m00 = float(moments.get("m00", 0.0))
    if m00 == 0.0:
        return None
    return (float(moments["m10"]) / m00, float(moments["m01"]) / m00)


def balance(centroid: Point2f, center: Point2f) -> Tuple[float, float]:
    return (centroid[0] - center[0], centroid[1] - center[1])
