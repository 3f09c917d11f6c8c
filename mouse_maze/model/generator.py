"""Solvability-guaranteed maze generation."""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from .grid import CellType, DIRECTIONS, Maze, Position, is_valid_position
from .pathfinding import bfs

logger = logging.getLogger(__name__)

MAX_RECURSION_DEPTH = 10


def generate_maze(size: int, obstacle_rate: float,
                  start: Optional[Tuple[int, int]] = None,
                  goal: Optional[Tuple[int, int]] = None,
                  rng: Optional[np.random.Generator] = None,
                  recursion_depth: int = 0) -> Maze:
    """
    Generate a maze whose start and goal are always connected.

    1. Carve a spanning tree with randomized depth-first backtracking on the
       doubled lattice rooted at ``start``
    2. Link the goal to the tree and protect one BFS path between them
    3. Add obstacles on unprotected cells until the obstacle quota is met,
       reverting any that disconnect start from goal
    4. Verify with BFS, retrying up to MAX_RECURSION_DEPTH times before
       falling back to an L-shaped corridor maze
    """
    _validate(size, obstacle_rate, start, goal)
    if rng is None:
        rng = np.random.default_rng()
    start = Position(*start) if start is not None else Position(0, 0)
    goal = Position(*goal) if goal is not None else Position(size - 1, size - 1)

    if recursion_depth >= MAX_RECURSION_DEPTH:
        logger.warning("Max recursion depth reached, returning corridor maze "
                       "(size=%d, start=%s, goal=%s)", size, start, goal)
        return corridor_maze(size, start, goal)

    maze = Maze.filled(size, CellType.OBSTACLE, start, goal)
    _carve_passages(maze, start, rng)
    _link_goal(maze, start, goal)

    guaranteed = set(bfs(maze, start, goal).path)
    candidates = [
        Position(int(x), int(y))
        for y, x in zip(*np.nonzero(maze.cells == CellType.EMPTY))
        if (x, y) != start and (x, y) != goal and (x, y) not in guaranteed
    ]

    target_obstacles = math.floor(size * size * obstacle_rate)
    to_add = max(0, target_obstacles - maze.obstacle_count())
    if to_add:
        _add_obstacles(maze, candidates, to_add, rng)

    if not bfs(maze, start, goal).found:
        logger.debug("Generated maze unsolvable, retrying (depth %d)", recursion_depth + 1)
        return generate_maze(size, obstacle_rate, start, goal, rng, recursion_depth + 1)

    maze.mark_endpoints()
    return maze


def corridor_maze(size: int, start: Tuple[int, int], goal: Tuple[int, int]) -> Maze:
    """
    Fully walled maze with a single L-shaped corridor.

    The corridor runs along the start row to the goal column, then along
    the goal column to the goal row.
    """
    start = Position(*start)
    goal = Position(*goal)
    maze = Maze.filled(size, CellType.OBSTACLE, start, goal)
    x_lo, x_hi = sorted((start.x, goal.x))
    y_lo, y_hi = sorted((start.y, goal.y))
    maze.cells[start.y, x_lo:x_hi + 1] = CellType.EMPTY
    maze.cells[y_lo:y_hi + 1, goal.x] = CellType.EMPTY
    maze.mark_endpoints()
    return maze


def _validate(size: int, obstacle_rate: float, start, goal) -> None:
    if size < 2:
        raise ValueError(f"Maze size must be at least 2, got {size}")
    if not 0.0 <= obstacle_rate <= 1.0:
        raise ValueError(f"Obstacle rate must be within [0, 1], got {obstacle_rate}")
    for name, pos in (('start', start), ('goal', goal)):
        if pos is not None and not is_valid_position(pos, size):
            raise ValueError(f"Maze {name} {pos!r} is outside a {size}x{size} maze")


def _carve_passages(maze: Maze, start: Position, rng: np.random.Generator) -> None:
    """Iterative recursive-backtracker over cells two steps apart."""
    size = maze.size
    visited = np.zeros((size, size), dtype=bool)
    visited[start.y, start.x] = True
    maze.set_cell(*start, CellType.EMPTY)
    stack: List[Position] = [start]

    while stack:
        current = stack[-1]
        moved = False
        for i in rng.permutation(len(DIRECTIONS)):
            dx, dy = DIRECTIONS[i]
            nx, ny = current.x + 2 * dx, current.y + 2 * dy
            if not maze.in_bounds(nx, ny) or visited[ny, nx]:
                continue
            visited[ny, nx] = True
            maze.set_cell(current.x + dx, current.y + dy, CellType.EMPTY)
            maze.set_cell(nx, ny, CellType.EMPTY)
            stack.append(Position(nx, ny))
            moved = True
            break
        if not moved:
            stack.pop()


def _link_goal(maze: Maze, start: Position, goal: Position) -> None:
    """
    Force the goal empty and join it to the carved lattice.

    Lattice cells share the start's parity, so a goal at odd offset is at
    most one step away from one on each axis.
    """
    maze.set_cell(*goal, CellType.EMPTY)
    lx = _nearest_lattice(goal.x, start.x, maze.size)
    ly = _nearest_lattice(goal.y, start.y, maze.size)
    maze.set_cell(lx, goal.y, CellType.EMPTY)
    maze.set_cell(lx, ly, CellType.EMPTY)


def _nearest_lattice(value: int, origin: int, size: int) -> int:
    if (value - origin) % 2 == 0:
        return value
    if value - 1 >= 0:
        return value - 1
    return value + 1 if value + 1 < size else value


def _add_obstacles(maze: Maze, candidates: List[Position], quota: int,
                   rng: np.random.Generator) -> int:
    """Place up to ``quota`` obstacles, reverting any that cut start from goal."""
    added = 0
    for i in rng.permutation(len(candidates)):
        if added >= quota:
            break
        x, y = candidates[i]
        previous = maze.get_cell(x, y)
        maze.set_cell(x, y, CellType.OBSTACLE)
        if maze.is_connected(maze.start, maze.goal):
            added += 1
        else:
            maze.set_cell(x, y, previous)
    return added
