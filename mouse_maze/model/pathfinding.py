"""Breadth-first search and A* over the maze grid."""

import heapq
import logging
import math
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .grid import DIRECTIONS, Maze, Position, clamp_position, is_valid_position
from .heuristics import HeuristicFunction, get_heuristic_function

logger = logging.getLogger(__name__)


class PathfindingAlgorithm(Enum):
    """Search algorithms an agent can plan with."""
    BFS = "bfs"
    ASTAR = "astar"


@dataclass
class PathResult:
    """Outcome of a single search. An empty path means no route."""
    path: List[Position] = field(default_factory=list)
    explored_nodes: List[Position] = field(default_factory=list)
    time: float = 0.0  # milliseconds

    @property
    def found(self) -> bool:
        return len(self.path) > 0

    def __len__(self) -> int:
        return len(self.path)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def _check_inputs(maze: Maze, start, goal, name: str) -> bool:
    if maze is None or maze.size < 1:
        logger.warning("Invalid maze passed to %s", name)
        return False
    if not is_valid_position(start, maze.size) or not is_valid_position(goal, maze.size):
        logger.warning("Invalid parameters in %s: start=%r goal=%r size=%d",
                       name, start, goal, maze.size)
        return False
    return True


def _reconstruct(parents: Dict[Position, Optional[Position]],
                 goal: Position, size: int) -> List[Position]:
    """Walk parent pointers back from goal and clamp every cell to the grid."""
    path = []
    node: Optional[Position] = goal
    while node is not None:
        path.append(node)
        node = parents[node]
    path.reverse()
    return [clamp_position(p, size) for p in path]


def _walkable_neighbors(maze: Maze, position: Position):
    x, y = position
    for dx, dy in DIRECTIONS:
        nx, ny = x + dx, y + dy
        if maze.in_bounds(nx, ny) and not maze.is_obstacle(nx, ny):
            yield Position(nx, ny)


def bfs(maze: Maze, start: Tuple[int, int], goal: Tuple[int, int]) -> PathResult:
    """
    Unweighted baseline search.

    Returns the shortest path in step count (start and goal inclusive), the
    nodes in dequeue order, and elapsed time. Unreachable goals and invalid
    input produce an empty path rather than an error.
    """
    if not _check_inputs(maze, start, goal, 'bfs'):
        return PathResult()

    started = time.perf_counter()
    start = Position(*start)
    goal = Position(*goal)

    queue = deque([start])
    parents: Dict[Position, Optional[Position]] = {start: None}
    explored: List[Position] = []

    while queue:
        current = queue.popleft()
        explored.append(current)

        if current == goal:
            path = _reconstruct(parents, goal, maze.size)
            return PathResult(path, explored, _elapsed_ms(started))

        for neighbor in _walkable_neighbors(maze, current):
            if neighbor in parents:
                continue
            parents[neighbor] = current
            queue.append(neighbor)

    return PathResult([], explored, _elapsed_ms(started))


class _Node:
    """Open-set entry; mutated in place when a cheaper route is found."""

    __slots__ = ('position', 'g', 'h', 'f', 'order')

    def __init__(self, position: Position, g: float, h: float, order: int):
        self.position = position
        self.g = g
        self.h = h
        self.f = g + h
        self.order = order


def _safe_estimate(heuristic: HeuristicFunction,
                   position: Position, goal: Position) -> float:
    value = heuristic(position, goal)
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)


def astar(maze: Maze, start: Tuple[int, int], goal: Tuple[int, int],
          heuristic_type: Optional[str] = None) -> PathResult:
    """
    Heuristic-guided search ordered by f = g + h.

    Ties on f go to the node inserted into the open set first. A neighbour
    already open with a lower or equal g is left alone; a strictly cheaper
    route updates the open node in place and keeps its insertion order.
    ``heuristic_type`` of None or 'auto' picks by the maze's obstacle rate.
    """
    if not _check_inputs(maze, start, goal, 'astar'):
        return PathResult()

    started = time.perf_counter()
    start = Position(*start)
    goal = Position(*goal)
    heuristic = get_heuristic_function(maze.obstacle_rate(), heuristic_type)

    counter = 0
    start_node = _Node(start, 0.0, _safe_estimate(heuristic, start, goal), counter)
    open_nodes: Dict[Position, _Node] = {start: start_node}
    heap: List[Tuple[float, int, Position]] = [(start_node.f, start_node.order, start)]
    parents: Dict[Position, Optional[Position]] = {start: None}
    closed = set()
    explored: List[Position] = []

    while heap:
        f, _, position = heapq.heappop(heap)
        node = open_nodes.get(position)
        # Stale heap entry left behind by an in-place update
        if node is None or f != node.f:
            continue
        del open_nodes[position]
        explored.append(position)

        if position == goal:
            path = _reconstruct(parents, goal, maze.size)
            return PathResult(path, explored, _elapsed_ms(started))

        closed.add(position)

        for neighbor in _walkable_neighbors(maze, position):
            if neighbor in closed:
                continue
            g = node.g + 1
            existing = open_nodes.get(neighbor)
            if existing is None:
                counter += 1
                h = _safe_estimate(heuristic, neighbor, goal)
                new_node = _Node(neighbor, g, h, counter)
                open_nodes[neighbor] = new_node
                parents[neighbor] = position
                heapq.heappush(heap, (new_node.f, new_node.order, neighbor))
            elif g < existing.g:
                existing.g = g
                existing.f = g + existing.h
                parents[neighbor] = position
                heapq.heappush(heap, (existing.f, existing.order, neighbor))

    return PathResult([], explored, _elapsed_ms(started))


def find_path(maze: Maze, start: Tuple[int, int], goal: Tuple[int, int],
              algorithm: PathfindingAlgorithm = PathfindingAlgorithm.ASTAR,
              heuristic_type: Optional[str] = None) -> PathResult:
    """Dispatch to the requested search algorithm."""
    if algorithm == PathfindingAlgorithm.BFS:
        return bfs(maze, start, goal)
    return astar(maze, start, goal, heuristic_type)
