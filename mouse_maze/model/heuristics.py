"""Distance estimates for A* and the obstacle-rate selection policy."""

import math
from typing import Callable, Dict, Optional, Tuple

import numpy as np

HeuristicFunction = Callable[[Tuple[int, int], Tuple[int, int]], float]

HEURISTIC_TYPES = ('manhattan', 'euclidean', 'diagonal')
AUTO = 'auto'

# Octile step costs
D = 1.0
D2 = math.sqrt(2)


def _deltas(current, goal) -> Optional[Tuple[int, int]]:
    """Absolute axis distances, or None for malformed input."""
    try:
        cx, cy = current
        gx, gy = goal
    except (TypeError, ValueError):
        return None
    for value in (cx, cy, gx, gy):
        if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
            return None
        if not math.isfinite(value):
            return None
    return abs(cx - gx), abs(cy - gy)


def manhattan_distance(current, goal) -> float:
    deltas = _deltas(current, goal)
    if deltas is None:
        return 0.0
    dx, dy = deltas
    return float(dx + dy)


def euclidean_distance(current, goal) -> float:
    deltas = _deltas(current, goal)
    if deltas is None:
        return 0.0
    dx, dy = deltas
    return math.sqrt(dx * dx + dy * dy)


def diagonal_distance(current, goal) -> float:
    """Octile distance: D * (dx + dy) + (D2 - 2D) * min(dx, dy)."""
    deltas = _deltas(current, goal)
    if deltas is None:
        return 0.0
    dx, dy = deltas
    return D * (dx + dy) + (D2 - 2 * D) * min(dx, dy)


HEURISTICS: Dict[str, HeuristicFunction] = {
    'manhattan': manhattan_distance,
    'euclidean': euclidean_distance,
    'diagonal': diagonal_distance,
}


def get_heuristic_function(obstacle_rate: float,
                           heuristic_type: Optional[str] = None) -> HeuristicFunction:
    """
    Resolve a heuristic by name, or by obstacle rate when none is given.

    The rate thresholds are a tuning policy: sparse mazes favour Manhattan,
    medium ones Euclidean and dense ones the octile estimate. All three are
    admissible for 4-directional unit-cost moves, so the choice never
    affects path optimality.
    """
    if heuristic_type and heuristic_type != AUTO:
        return HEURISTICS.get(heuristic_type, manhattan_distance)

    if obstacle_rate < 0.2:
        return manhattan_distance
    elif obstacle_rate < 0.4:
        return euclidean_distance
    return diagonal_distance
