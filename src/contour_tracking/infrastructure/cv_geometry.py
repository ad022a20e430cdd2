# src/contour_tracking/infrastructure/cv_geometry.py
from __future__ import annotations
from typing import Dict, List
import cv2
import numpy as np

from contour_tracking.domain.models.contours import (
    BoundingRect,
    Circle,
    ConvexityDefect,
    Point2f,
    RotatedRect,
)
from contour_tracking.domain.services.geometry import as_points


def _to_cv(points) -> np.ndarray:
    """(N, 2) -> (N, 1, 2) int32/float32, que es lo que acepta OpenCV."""
    arr = as_points(points)
    if np.issubdtype(arr.dtype, np.integer):
        arr = arr.astype(np.int32, copy=False)
    else:
        arr = arr.astype(np.float32, copy=False)
    return np.ascontiguousarray(arr).reshape(-1, 1, 2)


class OpenCvGeometry:
    """Implementación de `GeometryBackend` sobre cv2."""

    def extract_contours(
        self, binary: np.ndarray, *, find_holes: bool = False, simplify: bool = True
    ) -> List[np.ndarray]:
        mode = cv2.RETR_LIST if find_holes else cv2.RETR_EXTERNAL
        method = cv2.CHAIN_APPROX_SIMPLE if simplify else cv2.CHAIN_APPROX_NONE
        # findContours puede escribir sobre su entrada: se trabaja con una copia
        work = np.ascontiguousarray(binary).copy()
        cnts, _ = cv2.findContours(work, mode, method)
        out: List[np.ndarray] = []
        for cnt in cnts:
            pts = cnt.reshape(-1, 2).copy()
            pts.setflags(write=False)
            out.append(pts)
        return out

    def area(self, points: np.ndarray) -> float:
        if len(points) == 0:
            return 0.0
        return float(cv2.contourArea(_to_cv(points)))

    def perimeter(self, points: np.ndarray) -> float:
        if len(points) == 0:
            return 0.0
        return float(cv2.arcLength(_to_cv(points), True))

    def convex_hull(self, points: np.ndarray) -> np.ndarray:
        if len(points) == 0:
            return as_points(points).copy()
        return cv2.convexHull(_to_cv(points)).reshape(-1, 2)

    def simplify(self, points: np.ndarray, epsilon: float) -> np.ndarray:
        if len(points) == 0:
            return as_points(points).copy()
        return cv2.approxPolyDP(_to_cv(points), float(epsilon), True).reshape(-1, 2)

    def moments(self, points: np.ndarray) -> Dict[str, float]:
        if len(points) == 0:
            return {"m00": 0.0, "m10": 0.0, "m01": 0.0}
        return {k: float(v) for k, v in cv2.moments(_to_cv(points)).items()}

    def bounding_rect(self, points: np.ndarray) -> BoundingRect:
        if len(points) == 0:
            return BoundingRect(0, 0, 0, 0)
        x, y, w, h = cv2.boundingRect(_to_cv(points))
        return BoundingRect(int(x), int(y), int(w), int(h))

    def mean(self, points: np.ndarray) -> Point2f:
        arr = as_points(points).astype(np.float64)
        if arr.shape[0] == 0:
            return (0.0, 0.0)
        mx, my = arr.mean(axis=0)
        return (float(mx), float(my))

    def convexity_defects(self, points: np.ndarray) -> List[ConvexityDefect]:
        # convexityDefects solo acepta int32
        cnt = np.rint(_to_cv(points)).astype(np.int32)
        if cnt.shape[0] < 4:
            return []
        hull_idx = cv2.convexHull(cnt, returnPoints=False)
        if hull_idx is None or len(hull_idx) < 3:
            return []
        try:
            defects = cv2.convexityDefects(cnt, hull_idx)
        except cv2.error:
            # hull no monótono (contornos auto-intersectados)
            return []
        if defects is None:
            return []
        return [
            ConvexityDefect(
                start_index=int(s),
                end_index=int(e),
                farthest_index=int(f),
                depth=float(d) / 256.0,
            )
            for s, e, f, d in defects.reshape(-1, 4)
        ]

    def min_area_rect(self, points: np.ndarray) -> RotatedRect:
        return RotatedRect.from_cv(cv2.minAreaRect(_to_cv(points)))

    def min_enclosing_circle(self, points: np.ndarray) -> Circle:
        (cx, cy), radius = cv2.minEnclosingCircle(_to_cv(points))
        return Circle(center=(float(cx), float(cy)), radius=float(radius))

    def fit_ellipse(self, points: np.ndarray) -> RotatedRect:
        return RotatedRect.from_cv(cv2.fitEllipse(_to_cv(points)))
