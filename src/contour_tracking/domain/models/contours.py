from __future__ import annotations
from dataclasses import dataclass
from typing import List, Tuple, Optional, Iterator, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from contour_tracking.domain.models.finder_config import FinderConfig

Point2f = Tuple[float, float]


@dataclass(frozen=True)
class BoundingRect:
    x: int       # esquina superior izquierda (px)
    y: int
    width: int   # px
    height: int  # px

    @property
    def center(self) -> Point2f:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class RotatedRect:
    center: Point2f
    size: Tuple[float, float]  # (ancho, alto) tal como lo reporta OpenCV
    angle: float               # grados

    @staticmethod
    def from_cv(rect) -> "RotatedRect":
        (cx, cy), (w, h), angle = rect
        return RotatedRect(center=(float(cx), float(cy)), size=(float(w), float(h)), angle=float(angle))


@dataclass(frozen=True)
class Circle:
    center: Point2f
    radius: float


@dataclass(frozen=True)
class ConvexityDefect:
    start_index: int     # índice en el contorno donde empieza el defecto
    end_index: int
    farthest_index: int  # punto más profundo
    depth: float         # px (OpenCV lo entrega en punto fijo * 256)


@dataclass(frozen=True)
class Contour:
    """
    Resumen de un contorno detectado (equivalente a un "blob").
    `points` es un arreglo (N, 2) de solo lectura en píxeles del frame.
    """
    points: np.ndarray
    bounding_rect: BoundingRect
    area: float                 # siempre positiva (huecos incluidos)
    centroid: Point2f
    arc_length: float           # perímetro cerrado
    hole: bool = False

    @property
    def n_points(self) -> int:
        return int(self.points.shape[0])


@dataclass(frozen=True)
class ContourSet:
    """Contornos de un frame, ya filtrados/ordenados con la config usada."""
    contours: Tuple[Contour, ...] = ()
    config: Optional["FinderConfig"] = None
    image_size: Tuple[int, int] = (0, 0)  # (ancho, alto)

    def __len__(self) -> int:
        return len(self.contours)

    def __iter__(self) -> Iterator[Contour]:
        return iter(self.contours)

    def __getitem__(self, i: int) -> Contour:
        return self.contours[i]

    @property
    def bounding_rects(self) -> List[BoundingRect]:
        return [c.bounding_rect for c in self.contours]

    @property
    def polylines(self) -> List[List[Point2f]]:
        return [[(float(x), float(y)) for x, y in c.points] for c in self.contours]
