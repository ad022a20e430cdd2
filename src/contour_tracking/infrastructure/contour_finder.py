# src/contour_tracking/infrastructure/contour_finder.py
from __future__ import annotations
from typing import List, Optional, Tuple
import logging
import cv2
import numpy as np

from contour_tracking.domain.models.contours import (
    Circle,
    Contour,
    ContourSet,
    ConvexityDefect,
    Point2f,
    RotatedRect,
)
from contour_tracking.domain.models.finder_config import FinderConfig, TrackColorMode
from contour_tracking.domain.services import descriptors
from contour_tracking.domain.services.geometry import GeometryBackend
from contour_tracking.infrastructure.cv_geometry import OpenCvGeometry

logger = logging.getLogger(__name__)

# OpenCV guarda el hue en [0, 180)
_HUE_RANGE = 180


def _ensure_uint8(img: np.ndarray) -> np.ndarray:
    if img.dtype == np.uint8:
        return img
    if img.dtype == np.uint16:
        return (img / 257).astype(np.uint8)
    # sin reescalar: el umbral sigue siendo un nivel de gris absoluto
    return np.clip(img, 0, 255).astype(np.uint8)


class ContourFinder:
    """
    Busca contornos en un frame:
      imagen -> binaria (umbral de gris o distancia a un color objetivo)
             -> contornos (externos, o todos si se piden huecos)
             -> filtro por área -> orden por tamaño (opcional).

    No guarda estado entre frames: la configuración llega en cada llamada
    (o se usa la que se dio al construir). El frame del llamador no se toca.
    """

    def __init__(
        self,
        *,
        backend: Optional[GeometryBackend] = None,
        config: Optional[FinderConfig] = None,
    ) -> None:
        self.backend: GeometryBackend = backend if backend is not None else OpenCvGeometry()
        self.config = config if config is not None else FinderConfig()

    # ---------- helpers internos ----------
    @staticmethod
    def _channels(image: np.ndarray) -> int:
        if image.ndim == 2:
            return 1
        if image.ndim == 3 and image.shape[2] in (1, 3, 4):
            return int(image.shape[2])
        raise ValueError(f"Forma de imagen no soportada: {image.shape}")

    @staticmethod
    def _to_gray(image: np.ndarray) -> np.ndarray:
        ch = ContourFinder._channels(image)
        if ch == 1:
            return image.reshape(image.shape[0], image.shape[1])
        if ch == 3:
            return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)

    @staticmethod
    def _to_rgb(image: np.ndarray) -> np.ndarray:
        ch = ContourFinder._channels(image)
        if ch == 1:
            g = image.reshape(image.shape[0], image.shape[1])
            return cv2.cvtColor(g, cv2.COLOR_GRAY2RGB)
        if ch == 4:
            return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)
        return image

    @staticmethod
    def _color_distance(rgb: np.ndarray, config: FinderConfig) -> np.ndarray:
        """Distancia (máximo por canal) de cada píxel al color objetivo."""
        target = np.array(config.target_color, dtype=np.uint8).reshape(1, 1, 3)
        if config.track_color_mode is TrackColorMode.RGB:
            return cv2.absdiff(rgb, np.broadcast_to(target, rgb.shape).copy()).max(axis=2)

        hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV).astype(np.int16)
        target_hsv = cv2.cvtColor(target, cv2.COLOR_RGB2HSV).astype(np.int16).reshape(3)
        dh = np.abs(hsv[..., 0] - target_hsv[0])
        dh = np.minimum(dh, _HUE_RANGE - dh)
        if config.track_color_mode is TrackColorMode.H:
            return dh
        ds = np.abs(hsv[..., 1] - target_hsv[1])
        dv = np.abs(hsv[..., 2] - target_hsv[2])
        return np.maximum(dh, np.maximum(ds, dv))

    def binarize(self, image: np.ndarray, config: Optional[FinderConfig] = None) -> np.ndarray:
        """Máscara uint8 (0/255) de las regiones a contornear."""
        config = config if config is not None else self.config
        img = _ensure_uint8(np.asarray(image))
        if config.target_color is not None:
            dist = self._color_distance(self._to_rgb(img), config)
            mask = (dist <= config.threshold).astype(np.uint8) * 255
            if config.invert:
                mask = cv2.bitwise_not(mask)
            return mask

        gray = self._to_gray(img)
        mode = cv2.THRESH_BINARY_INV if config.invert else cv2.THRESH_BINARY
        _, thresh = cv2.threshold(gray, float(config.threshold), 255, mode)
        return thresh

    def find_contours(self, image: np.ndarray, config: Optional[FinderConfig] = None) -> ContourSet:
        config = config if config is not None else self.config
        if image is None or np.asarray(image).size == 0:
            return ContourSet(config=config)

        # trabajamos sobre una copia: el frame del llamador es intocable
        src = np.array(image, copy=True)
        binary = self.binarize(src, config)
        h, w = binary.shape[:2]

        all_contours = self.backend.extract_contours(
            binary, find_holes=config.find_holes, simplify=config.simplify
        )

        # === filtro por área ===
        indices: List[int] = []
        areas: List[float] = []
        need_min = config.needs_min_filter
        need_max = config.needs_max_filter
        if need_min or need_max or config.sort_by_size:
            lo, hi = config.area_bounds(float(w * h))
            for i, pts in enumerate(all_contours):
                a = abs(self.backend.area(pts))
                areas.append(a)
                if (not need_min or a >= lo) and (not need_max or a <= hi):
                    indices.append(i)
        else:
            indices = list(range(len(all_contours)))

        if config.sort_by_size and len(indices) > 1:
            # orden decreciente por área; sorted es estable ante empates
            indices = sorted(indices, key=lambda i: areas[i], reverse=True)

        contours: Tuple[Contour, ...] = tuple(
            descriptors.build_contour(all_contours[i], self.backend) for i in indices
        )
        logger.debug("find_contours: %d/%d contornos tras filtrar", len(contours), len(all_contours))
        return ContourSet(contours=contours, config=config, image_size=(w, h))

    # ---------- descriptores por contorno ----------
    def center(self, contour: Contour) -> Point2f:
        return descriptors.center(contour.bounding_rect)

    def average(self, contour: Contour) -> Point2f:
        return descriptors.average(contour.points, self.backend)

    def balance(self, contour: Contour) -> Tuple[float, float]:
        return descriptors.contour_balance(contour)

    def convex_hull(self, contour: Contour) -> np.ndarray:
        return descriptors.convex_hull(contour, self.backend)

    def convexity_defects(self, contour: Contour) -> List[ConvexityDefect]:
        return descriptors.convexity_defects(contour, self.backend)

    def min_area_rect(self, contour: Contour) -> RotatedRect:
        return descriptors.min_area_rect(contour, self.backend)

    def min_enclosing_circle(self, contour: Contour) -> Circle:
        return descriptors.min_enclosing_circle(contour, self.backend)

    def fit_ellipse(self, contour: Contour) -> RotatedRect:
        return descriptors.fit_ellipse(contour, self.backend)

    def fit_quad(self, contour: Contour) -> np.ndarray:
        return descriptors.fit_contour_quad(contour, self.backend)
