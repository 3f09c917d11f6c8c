"""Batch comparison of A* heuristics across obstacle rates."""

import logging
from typing import Iterable, List, Optional

import numpy as np

from .generator import generate_maze
from .grid import Position
from .heuristics import HEURISTIC_TYPES
from .pathfinding import astar
from .state import ExperimentResult

logger = logging.getLogger(__name__)

DEFAULT_RATES = (0.1, 0.2, 0.3, 0.4, 0.5)


def run_heuristic_comparison(size: int,
                             rates: Iterable[float] = DEFAULT_RATES,
                             rng: Optional[np.random.Generator] = None) -> List[ExperimentResult]:
    """
    Generate one maze per obstacle rate and run A* with every heuristic.

    Each maze runs corner to corner, from (0, 0) to (size - 1, size - 1).
    """
    if rng is None:
        rng = np.random.default_rng()
    start = Position(0, 0)
    goal = Position(size - 1, size - 1)

    results = []
    for rate in rates:
        maze = generate_maze(size, rate, start, goal, rng)
        runs = {name: astar(maze, start, goal, name) for name in HEURISTIC_TYPES}
        lengths = {name: len(run.path) for name, run in runs.items()}
        result = ExperimentResult(
            obstacle_rate=round(float(rate), 2),
            manhattan_nodes=lengths['manhattan'],
            euclidean_nodes=lengths['euclidean'],
            diagonal_nodes=lengths['diagonal'],
            optimal_nodes=min(lengths.values()),
            manhattan_explored=len(runs['manhattan'].explored_nodes),
            euclidean_explored=len(runs['euclidean'].explored_nodes),
            diagonal_explored=len(runs['diagonal'].explored_nodes)
        )
        logger.debug("Heuristic comparison at rate %.1f: %s", rate, result)
        results.append(result)
    return results
