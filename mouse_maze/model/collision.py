"""Post-move collision detection and resolution."""

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

import numpy as np

from .agent import Agent
from .grid import Maze, Position, clamp_position

logger = logging.getLogger(__name__)


def resolve_collisions(agents: Sequence[Agent], maze: Maze,
                       rng: np.random.Generator) -> List[List[int]]:
    """
    Separate active agents that ended a tick on the same cell.

    Within each crowded cell the lowest id keeps its place. Every other
    agent counts a collision and steps back to the cell it moved from this
    tick. If it did not move, or that cell has become an obstacle, it moves
    to a random free neighbour not occupied by another active agent, or
    stays put. This is a priority scheme rather than a simultaneous-move
    solver: a displaced agent may collide again on the next tick.

    Returns the agent ids of every collided group, sorted.
    """
    cells: Dict[Position, List[Agent]] = defaultdict(list)
    for agent in agents:
        if agent.is_active:
            cells[agent.position].append(agent)

    groups = []
    for position, crowd in cells.items():
        if len(crowd) < 2:
            continue
        crowd.sort(key=lambda a: a.id)
        for agent in crowd[1:]:
            agent.collisions += 1
            if not agent.step_back(maze):
                _scatter(agent, agents, maze, rng)
        ids = [a.id for a in crowd]
        groups.append(ids)
        logger.debug("Collision at %s between agents %s", tuple(position), ids)

    for agent in agents:
        agent.position = clamp_position(agent.position, maze.size)
    return groups


def _scatter(agent: Agent, agents: Sequence[Agent], maze: Maze,
             rng: np.random.Generator) -> None:
    occupied = {a.position for a in agents if a.is_active and a is not agent}
    options = [p for p in maze.neighbors(agent.position) if p not in occupied]
    if options:
        agent.position = options[int(rng.integers(len(options)))]
