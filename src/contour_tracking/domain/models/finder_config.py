# src/contour_tracking/domain/models/finder_config.py
from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import json
import math


class TrackColorMode(str, Enum):
    """
    Espacio en el que se compara el color objetivo.
    - RGB: distancia por canal en RGB.
    - HSV: distancia por canal en HSV (hue con vuelta circular).
    - H: solo el hue.
    """
    RGB = "rgb"
    HSV = "hsv"
    H = "h"


@dataclass(frozen=True)
class FinderConfig:
    """
    Parámetros del buscador de contornos. Inmutable: cada cambio produce
    una nueva config (`with_*`) que se pasa explícitamente a `find_contours`.

    Sin color objetivo se buscan regiones claras (> threshold); con
    `invert=True`, regiones oscuras. Con color objetivo, `threshold` es la
    tolerancia: 0 = color exacto, 255 = cualquier color.

    Las áreas están en px² salvo que `*_area_norm` sea True; en ese caso son
    fracción (0-1) del área de la imagen.
    """
    threshold: float = 128.0
    invert: bool = False
    find_holes: bool = False
    sort_by_size: bool = False
    simplify: bool = True
    min_area: float = 0.0
    max_area: float = math.inf
    min_area_norm: bool = False
    max_area_norm: bool = False
    target_color: Optional[Tuple[int, int, int]] = None  # RGB
    track_color_mode: TrackColorMode = TrackColorMode.RGB

    def __post_init__(self) -> None:
        if not 0.0 <= float(self.threshold) <= 255.0:
            raise ValueError(f"threshold fuera de rango [0, 255]: {self.threshold}")
        if self.min_area < 0 or self.max_area < 0:
            raise ValueError("min_area/max_area no pueden ser negativas")
        if self.min_area_norm and self.min_area > 1.0:
            raise ValueError(f"min_area normalizada debe estar en [0, 1]: {self.min_area}")
        if self.max_area_norm and self.max_area > 1.0:
            raise ValueError(f"max_area normalizada debe estar en [0, 1]: {self.max_area}")
        if self.min_area_norm == self.max_area_norm and self.min_area > self.max_area:
            raise ValueError(f"min_area ({self.min_area}) > max_area ({self.max_area})")
        if self.target_color is not None:
            color = tuple(self.target_color)
            if len(color) != 3 or any(not 0 <= int(c) <= 255 for c in color):
                raise ValueError(f"target_color debe ser (r, g, b) en [0, 255]: {self.target_color}")
            object.__setattr__(self, "target_color", tuple(int(c) for c in color))
        if not isinstance(self.track_color_mode, TrackColorMode):
            object.__setattr__(self, "track_color_mode", TrackColorMode(self.track_color_mode))

    # ---------- filtros de área ----------
    @property
    def needs_min_filter(self) -> bool:
        return self.min_area > 0

    @property
    def needs_max_filter(self) -> bool:
        return self.max_area < 1.0 if self.max_area_norm else self.max_area < math.inf

    def area_bounds(self, image_area: float) -> Tuple[float, float]:
        """Límites (min, max) en px² para una imagen de `image_area` px."""
        lo = self.min_area * image_area if self.min_area_norm else self.min_area
        hi = self.max_area * image_area if self.max_area_norm else self.max_area
        return float(lo), float(hi)

    # ---------- builders ----------
    def with_min_area(self, min_area: float) -> "FinderConfig":
        return replace(self, min_area=float(min_area), min_area_norm=False)

    def with_max_area(self, max_area: float) -> "FinderConfig":
        return replace(self, max_area=float(max_area), max_area_norm=False)

    def with_min_area_radius(self, radius: float) -> "FinderConfig":
        """Área mínima de un círculo de ese radio: se siente más "lineal"."""
        return self.with_min_area(math.pi * radius * radius)

    def with_max_area_radius(self, radius: float) -> "FinderConfig":
        return self.with_max_area(math.pi * radius * radius)

    def with_min_area_norm(self, fraction: float) -> "FinderConfig":
        return replace(self, min_area=float(fraction), min_area_norm=True)

    def with_max_area_norm(self, fraction: float) -> "FinderConfig":
        return replace(self, max_area=float(fraction), max_area_norm=True)

    def reset_min_area(self) -> "FinderConfig":
        return self.with_min_area(0.0)

    def reset_max_area(self) -> "FinderConfig":
        return self.with_max_area(math.inf)

    def with_threshold(self, threshold: float) -> "FinderConfig":
        return replace(self, threshold=float(threshold))

    def with_invert(self, invert: bool) -> "FinderConfig":
        return replace(self, invert=bool(invert))

    def with_target_color(
        self,
        color: Optional[Tuple[int, int, int]],
        mode: TrackColorMode = TrackColorMode.RGB,
    ) -> "FinderConfig":
        return replace(self, target_color=color, track_color_mode=TrackColorMode(mode))

    # ---------- persistencia ----------
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["track_color_mode"] = self.track_color_mode.value
        if self.target_color is not None:
            data["target_color"] = list(self.target_color)
        # JSON no admite inf
        if math.isinf(self.max_area):
            data["max_area"] = None
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "FinderConfig":
        parsed: Dict[str, Any] = dict(data)
        known = set(FinderConfig.__dataclass_fields__)
        unknown = set(parsed) - known
        if unknown:
            raise ValueError(f"Campos desconocidos en la config: {sorted(unknown)}")
        if parsed.get("max_area", 0.0) is None:
            parsed["max_area"] = math.inf
        color = parsed.get("target_color")
        if color is not None:
            parsed["target_color"] = tuple(color)
        if "track_color_mode" in parsed:
            parsed["track_color_mode"] = TrackColorMode(parsed["track_color_mode"])
        return FinderConfig(**parsed)


def load_finder_config(path: Path) -> FinderConfig:
    """Lee una FinderConfig desde un JSON (mismo formato que `to_dict`)."""
    with Path(path).open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: se esperaba un objeto JSON")
    return FinderConfig.from_dict(data)


def save_finder_config(config: FinderConfig, path: Path) -> None:
    with Path(path).open("w", encoding="utf-8") as fh:
        json.dump(config.to_dict(), fh, indent=2)
