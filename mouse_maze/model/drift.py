"""Periodic obstacle-density drift applied between simulation ticks."""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .agent import Agent
from .grid import CellType, Maze

logger = logging.getLogger(__name__)


def adjust_obstacle_rate(maze: Maze, target_rate: float,
                         rng: np.random.Generator) -> int:
    """
    Add or remove obstacles in place until ``round(target_rate * size^2)`` remain.

    New obstacles go on uniformly random empty cells other than start and
    goal; removals pick uniformly random obstacle cells. Solvability is not
    re-checked here. Returns the signed change in obstacle count.
    """
    total = maze.size * maze.size
    current = maze.obstacle_count()
    target = int(round(target_rate * total))
    flat = maze.cells.flatten()
    change = 0

    if target > current:
        endpoints = {maze.start.y * maze.size + maze.start.x,
                     maze.goal.y * maze.size + maze.goal.x}
        candidates = np.array([i for i in np.flatnonzero(flat == CellType.EMPTY)
                               if i not in endpoints], dtype=np.intp)
        change = min(target - current, len(candidates))
        if change:
            flat[rng.choice(candidates, size=change, replace=False)] = CellType.OBSTACLE
    elif target < current:
        candidates = np.flatnonzero(flat == CellType.OBSTACLE)
        removed = current - target
        flat[rng.choice(candidates, size=removed, replace=False)] = CellType.EMPTY
        change = -removed

    maze.cells[:] = flat.reshape(maze.cells.shape)
    return change


def evacuate_agents(maze: Maze, agents: Sequence[Agent]) -> int:
    """Clear obstacles under active agents so no one is walled in place."""
    cleared = 0
    for agent in agents:
        if agent.is_active and maze.is_obstacle(*agent.position):
            maze.set_cell(*agent.position, CellType.EMPTY)
            cleared += 1
    return cleared


def disconnected_agents(maze: Maze, agents: Sequence[Agent]) -> List[int]:
    """Ids of active agents with no free route to the goal."""
    reachable = maze.reachable_mask(maze.goal)
    return [a.id for a in agents
            if a.is_active and not reachable[a.position.y, a.position.x]]


class ObstacleDrift:
    """
    Random walk of the global obstacle rate.

    Every ``interval`` ticks the rate moves by a uniform delta in
    ``[-max_delta, max_delta]``, clamped to ``[min_rate, max_rate]``, and the
    grid is re-derived toward it.
    """

    def __init__(self, interval: int = 50, max_delta: float = 0.05,
                 min_rate: float = 0.10, max_rate: float = 0.50):
        self.interval = interval
        self.max_delta = max_delta
        self.min_rate = min_rate
        self.max_rate = max_rate
        self.events = 0

    def is_due(self, tick: int) -> bool:
        return self.interval > 0 and tick > 0 and tick % self.interval == 0

    def next_rate(self, rate: float, rng: np.random.Generator) -> float:
        delta = rng.uniform(-self.max_delta, self.max_delta)
        return float(np.clip(rate + delta, self.min_rate, self.max_rate))

    def apply(self, maze: Maze, rate: float, agents: Sequence[Agent],
              rng: np.random.Generator) -> float:
        """Perturb the rate, mutate the grid and free agents' cells. Returns the new rate."""
        new_rate = self.next_rate(rate, rng)
        changed = adjust_obstacle_rate(maze, new_rate, rng)
        evacuate_agents(maze, agents)
        self.events += 1
        logger.info("Obstacle rate adjusted to %.0f%% (%+d obstacles)",
                    new_rate * 100, changed)

        cut_off = disconnected_agents(maze, agents)
        if cut_off:
            logger.warning("Agents %s have no route to the goal after drift", cut_off)
        return new_rate

    def maybe_apply(self, tick: int, maze: Maze, rate: float,
                    agents: Sequence[Agent],
                    rng: np.random.Generator) -> Optional[float]:
        if not self.is_due(tick):
            return None
        return self.apply(maze, rate, agents, rng)
