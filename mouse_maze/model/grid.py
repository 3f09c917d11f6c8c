"""Maze grid model: cells, positions, bounds utilities and text import."""

from enum import IntEnum
from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
from scipy.ndimage import label


class CellType(IntEnum):
    """Authoritative cell states stored in the grid."""
    EMPTY = 0
    OBSTACLE = 1
    START = 2
    GOAL = 3


class Position(NamedTuple):
    """Immutable grid coordinate."""
    x: int
    y: int


class MazeFormatError(ValueError):
    """Raised when maze text does not match the expected layout."""


# Up, right, down, left
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

# Von Neumann neighbourhood for connected-component labelling
_CONNECTIVITY = np.array([[0, 1, 0],
                          [1, 1, 1],
                          [0, 1, 0]])


def is_valid_position(position, size: int) -> bool:
    """Check that ``position`` is an integer pair inside a ``size`` grid."""
    try:
        x, y = position
    except (TypeError, ValueError):
        return False
    if isinstance(x, bool) or isinstance(y, bool):
        return False
    if not isinstance(x, (int, np.integer)) or not isinstance(y, (int, np.integer)):
        return False
    return 0 <= x < size and 0 <= y < size


def clamp_position(position, size: int) -> Position:
    """Force a coordinate pair into ``[0, size - 1]`` on both axes."""
    x, y = position
    return Position(int(max(0, min(size - 1, x))), int(max(0, min(size - 1, y))))


def center_position(size: int) -> Position:
    """Reference goal placement: the grid center."""
    return Position(size // 2, size // 2)


class Maze:
    """
    Square cell grid plus the designated start and goal.

    Coordinate convention: (x, y) for API, [y, x] for array indexing.
    """

    def __init__(self, size: int,
                 start: Optional[Tuple[int, int]] = None,
                 goal: Optional[Tuple[int, int]] = None,
                 cells: Optional[np.ndarray] = None):
        if size < 1:
            raise ValueError(f"Maze size must be positive, got {size}")
        self.size = size
        if cells is None:
            cells = np.full((size, size), CellType.EMPTY, dtype=np.int8)
        elif cells.shape != (size, size):
            raise ValueError(f"Cell array shape {cells.shape} does not match size {size}")
        self.cells = cells
        self.start = Position(*start) if start is not None else Position(0, 0)
        self.goal = Position(*goal) if goal is not None else Position(size - 1, size - 1)

    @classmethod
    def filled(cls, size: int, cell_type: CellType,
               start: Optional[Tuple[int, int]] = None,
               goal: Optional[Tuple[int, int]] = None) -> "Maze":
        """Create a maze with every cell set to ``cell_type``."""
        cells = np.full((size, size), cell_type, dtype=np.int8)
        return cls(size, start, goal, cells)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get_cell(self, x: int, y: int) -> CellType:
        return CellType(int(self.cells[y, x]))

    def set_cell(self, x: int, y: int, cell_type: CellType) -> None:
        self.cells[y, x] = cell_type

    def is_obstacle(self, x: int, y: int) -> bool:
        """Out-of-bounds cells count as obstacles."""
        if not self.in_bounds(x, y):
            return True
        return self.cells[y, x] == CellType.OBSTACLE

    def is_walkable(self, x: int, y: int) -> bool:
        return not self.is_obstacle(x, y)

    def neighbors(self, position: Tuple[int, int]) -> List[Position]:
        """Walkable orthogonal neighbours in up, right, down, left order."""
        x, y = position
        result = []
        for dx, dy in DIRECTIONS:
            nx, ny = x + dx, y + dy
            if self.is_walkable(nx, ny):
                result.append(Position(nx, ny))
        return result

    def obstacle_count(self) -> int:
        return int(np.count_nonzero(self.cells == CellType.OBSTACLE))

    def obstacle_rate(self) -> float:
        return self.obstacle_count() / float(self.size * self.size)

    def set_goal(self, goal: Tuple[int, int]) -> None:
        """Move the goal; it must resolve to a non-obstacle cell."""
        if not is_valid_position(goal, self.size):
            raise ValueError(f"Goal {goal} is outside a {self.size}x{self.size} maze")
        goal = Position(*goal)
        if self.is_obstacle(*goal):
            raise ValueError(f"Goal {tuple(goal)} is an obstacle cell")
        if self.get_cell(*self.goal) == CellType.GOAL:
            self.set_cell(*self.goal, CellType.EMPTY)
        self.goal = goal
        self.mark_endpoints()

    def mark_endpoints(self) -> None:
        """Write the START and GOAL cell types, leaving obstacle starts alone."""
        if self.in_bounds(*self.start) and not self.is_obstacle(*self.start):
            self.set_cell(*self.start, CellType.START)
        if self.in_bounds(*self.goal):
            self.set_cell(*self.goal, CellType.GOAL)

    def free_mask(self) -> np.ndarray:
        """Boolean mask of non-obstacle cells."""
        return self.cells != CellType.OBSTACLE

    def reachable_mask(self, origin: Tuple[int, int]) -> np.ndarray:
        """Mask of all cells 4-connected to ``origin`` through free cells."""
        mask = np.zeros((self.size, self.size), dtype=bool)
        if not is_valid_position(origin, self.size) or self.is_obstacle(*origin):
            return mask
        labels, _ = label(self.free_mask(), structure=_CONNECTIVITY)
        x, y = origin
        return labels == labels[y, x]

    def is_connected(self, a: Tuple[int, int], b: Tuple[int, int]) -> bool:
        """Whether a free-cell route exists between ``a`` and ``b``."""
        if not (is_valid_position(a, self.size) and is_valid_position(b, self.size)):
            return False
        if self.is_obstacle(*a) or self.is_obstacle(*b):
            return False
        labels, _ = label(self.free_mask(), structure=_CONNECTIVITY)
        return labels[a[1], a[0]] == labels[b[1], b[0]]

    def copy(self) -> "Maze":
        return Maze(self.size, self.start, self.goal, self.cells.copy())

    def snapshot(self) -> "Maze":
        """Read-only copy used for consistent reads during one tick."""
        frozen = self.copy()
        frozen.cells.flags.writeable = False
        return frozen

    def __repr__(self) -> str:
        return (f"Maze(size={self.size}, start={tuple(self.start)}, "
                f"goal={tuple(self.goal)}, obstacle_rate={self.obstacle_rate():.2f})")


def parse_maze_text(content: str, size: int) -> np.ndarray:
    """
    Parse a '0'/'1' text block into a cell array.

    The block must contain exactly ``size`` lines of exactly ``size``
    characters; '1' marks an obstacle and '0' an empty cell.
    """
    rows = [row.strip() for row in content.strip().splitlines()]

    if len(rows) != size:
        raise MazeFormatError(
            f"Invalid maze file: expected {size} rows, found {len(rows)}")

    cells = np.zeros((size, size), dtype=np.int8)
    for y, row in enumerate(rows):
        if len(row) != size:
            raise MazeFormatError(
                f"Invalid maze file: row {y + 1} should have length {size}, "
                f"found {len(row)}")
        for x, char in enumerate(row):
            if char not in ('0', '1'):
                raise MazeFormatError(
                    f"Invalid maze file: row {y + 1}, column {x + 1} should be "
                    f"'0' or '1', found {char!r}")
            if char == '1':
                cells[y, x] = CellType.OBSTACLE
    return cells


def load_maze_file(path: Path, size: int,
                   start: Tuple[int, int],
                   goal: Tuple[int, int]) -> Maze:
    """Read a maze text file and attach start and goal."""
    with open(path) as f:
        content = f.read()
    cells = parse_maze_text(content, size)
    for name, pos in (('start', start), ('goal', goal)):
        if not is_valid_position(pos, size):
            raise ValueError(f"Maze {name} {tuple(pos)} is outside a {size}x{size} maze")
    maze = Maze(size, start, goal, cells)
    if maze.is_obstacle(*maze.goal):
        raise ValueError(f"Maze goal {tuple(maze.goal)} is an obstacle cell")
    maze.mark_endpoints()
    return maze
