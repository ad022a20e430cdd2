"""Example app loop: frame -> blur -> contours -> bounding boxes -> tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple

import cv2
import numpy as np

from contour_tracking.domain.models.contours import BoundingRect, ContourSet, Point2f
from contour_tracking.domain.models.finder_config import FinderConfig
from contour_tracking.infrastructure.contour_finder import ContourFinder

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def read(self) -> Optional[np.ndarray]:
        """Siguiente frame, o None cuando la fuente se agotó (fin del stream)."""
        ...


class RectTracker(Protocol):
    def track(self, rects: Sequence[BoundingRect]) -> Sequence[int]:
        """Una etiqueta persistente por rect, en el mismo orden."""
        ...


class ArrayFrameSource:
    """Fuente de frames en memoria (útil en pruebas o con frames ya decodificados)."""

    def __init__(self, frames: Iterable[np.ndarray]) -> None:
        self._it: Iterator[np.ndarray] = iter(frames)

    def read(self) -> Optional[np.ndarray]:
        return next(self._it, None)


def default_app_config() -> FinderConfig:
    return (
        FinderConfig()
        .with_min_area_radius(1)
        .with_max_area_radius(100)
        .with_threshold(15)
    )


@dataclass
class ContourTrackingApp:
    source: FrameSource
    tracker: RectTracker
    finder: ContourFinder = field(default_factory=ContourFinder)
    config: FinderConfig = field(default_factory=default_app_config)
    blur_size: int = 10

    contours: ContourSet = field(default_factory=ContourSet, init=False)
    labels: List[int] = field(default_factory=list, init=False)
    frames: int = field(default=0, init=False)

    def update(self) -> bool:
        """Procesa un frame. False si la fuente ya no tiene más frames."""
        frame = self.source.read()
        if frame is None:
            return False

        if self.blur_size > 1:
            frame = cv2.blur(frame, (self.blur_size, self.blur_size))
        self.contours = self.finder.find_contours(frame, self.config)

        boxes = self.contours.bounding_rects
        labels = list(self.tracker.track(boxes))
        if len(labels) != len(boxes):
            raise ValueError(
                f"El tracker devolvió {len(labels)} etiquetas para {len(boxes)} rects"
            )
        self.labels = labels
        self.frames += 1
        logger.debug("frame %d: %d contornos", self.frames, len(boxes))
        return True

    def run(self, max_frames: Optional[int] = None) -> int:
        """Consume la fuente hasta agotarla (o `max_frames`). Devuelve frames procesados."""
        done = 0
        while max_frames is None or done < max_frames:
            if not self.update():
                break
            done += 1
        return done

    def labeled_centers(self) -> List[Tuple[int, Point2f]]:
        """(etiqueta, centro del bounding box) de cada contorno del último frame."""
        return [(label, c.bounding_rect.center) for label, c in zip(self.labels, self.contours)]
