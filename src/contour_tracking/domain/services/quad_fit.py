# src/contour_tracking/domain/services/quad_fit.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Tuple
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)

SimplifyFn = Callable[[np.ndarray, float], np.ndarray]

TARGET_POINTS = 4
MAX_ITERATIONS = 16
INITIAL_EPSILON = 16.0  # buen punto de partida empírico (px)


@dataclass
class QuadFit:
    points: np.ndarray
    epsilon: float            # último epsilon usado (0 si no hubo búsqueda)
    converged: bool           # True si `points` tiene exactamente el objetivo
    calls: int = 0            # llamadas a simplify
    brackets: List[Tuple[float, float]] = field(default_factory=list)  # (min, max) tras cada paso


def search_quad(
    hull: np.ndarray,
    simplify: SimplifyFn,
    *,
    target_points: int = TARGET_POINTS,
    max_iterations: int = MAX_ITERATIONS,
    initial_epsilon: float = INITIAL_EPSILON,
) -> QuadFit:
    """
    Búsqueda binaria (no acotada arriba) del epsilon de simplificación que
    deja `hull` con exactamente `target_points` vértices.

    Mientras no exista cota superior el epsilon se duplica; después se toma
    el punto medio del intervalo [min, max]. Si no se acierta en
    `max_iterations` pasos se devuelve la última simplificación.
    """
    if len(hull) <= target_points:
        return QuadFit(points=hull, epsilon=0.0, converged=len(hull) == target_points)

    min_eps = 0.0
    max_eps = math.inf
    cur_eps = float(initial_epsilon)
    quad = hull
    used_eps = cur_eps
    converged = False
    calls = 0
    brackets: List[Tuple[float, float]] = []

    for _ in range(max_iterations):
        used_eps = cur_eps
        quad = simplify(hull, cur_eps)
        calls += 1
        n = len(quad)
        if n == target_points:
            converged = True
            brackets.append((min_eps, max_eps))
            break
        if n > target_points:
            # muy poco agresivo
            min_eps = cur_eps
            cur_eps = cur_eps * 2 if math.isinf(max_eps) else (min_eps + max_eps) / 2
        else:
            # demasiado agresivo
            max_eps = cur_eps
            cur_eps = (min_eps + max_eps) / 2
        brackets.append((min_eps, max_eps))

    if not converged:
        logger.debug(
            "fit_quad sin convergencia tras %d iteraciones (%d puntos, eps=%.4f)",
            calls, len(quad), used_eps,
        )
    return QuadFit(points=quad, epsilon=used_eps, converged=converged, calls=calls, brackets=brackets)


def fit_quad(hull: np.ndarray, simplify: SimplifyFn, **kwargs) -> np.ndarray:
    """Cuadrilátero aproximado de un polígono convexo (best effort)."""
    return search_quad(hull, simplify, **kwargs).points
