"""Maze-navigating agent ("computer mouse")."""

from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .grid import Maze, Position, clamp_position, is_valid_position
from .pathfinding import PathfindingAlgorithm, PathResult, find_path


class AgentState(Enum):
    """Possible states for an agent. Only ACTIVE agents move."""
    ACTIVE = "active"
    FINISHED = "finished"
    STUCK = "stuck"


class AgentStrategy(Enum):
    """Rule an agent applies before falling back to its own plan."""
    FOLLOWER = "follower"
    COMPETITOR = "competitor"
    RANDOM = "random"


class Agent:
    """
    One simulated mouse with its own plan, strategy and counters.

    ``path_index`` is the cursor of the live position inside ``path``;
    ``steps_taken`` counts moves made and is what rankings compare.
    """

    def __init__(self, agent_id: int,
                 position: Tuple[int, int],
                 strategy: AgentStrategy,
                 heuristic_type: str = 'auto',
                 algorithm: PathfindingAlgorithm = PathfindingAlgorithm.ASTAR,
                 patience: int = 20):
        self.id = agent_id
        self.position = Position(*position)
        self.path: List[Position] = [self.position]
        self.path_index = 0
        self.steps_taken = 0
        self.previous_position: Optional[Position] = None
        self.moved_along_path = False
        self.collisions = 0
        self.state = AgentState.ACTIVE
        self.strategy = strategy
        self.heuristic_type = heuristic_type
        self.algorithm = algorithm
        self.explored_nodes: List[Position] = []
        self.pathfinding_time = 0.0
        self.initial_patience = patience
        self.patience = patience

    @property
    def is_active(self) -> bool:
        return self.state == AgentState.ACTIVE

    def plan(self, maze: Maze, target: Tuple[int, int]) -> PathResult:
        """Search from the live position with this agent's own settings."""
        return find_path(maze, self.position, target,
                         self.algorithm, self.heuristic_type)

    def adopt_plan(self, result: PathResult) -> None:
        """Replace the cached path and record planning statistics."""
        self.path = list(result.path) if result.found else [self.position]
        self.path_index = 0
        self.explored_nodes = list(result.explored_nodes)
        self.pathfinding_time = result.time
        if result.found:
            self.patience = self.initial_patience

    def next_waypoint(self, maze: Maze) -> Optional[Position]:
        """
        Next cell of the cached path, or None when the path is no longer usable.

        The waypoint must exist, lie inside the grid, not be an obstacle and
        be orthogonally adjacent to the live position.
        """
        index = self.path_index + 1
        if index >= len(self.path):
            return None
        waypoint = self.path[index]
        if not is_valid_position(waypoint, maze.size) or maze.is_obstacle(*waypoint):
            return None
        dx = abs(waypoint.x - self.position.x)
        dy = abs(waypoint.y - self.position.y)
        if dx + dy != 1:
            return None
        return waypoint

    def position_in_path(self) -> int:
        """Index of the first path cell equal to the live position, or -1."""
        try:
            return self.path.index(self.position)
        except ValueError:
            return -1

    def random_move(self, maze: Maze, rng: np.random.Generator) -> Optional[Position]:
        """Uniformly random walkable orthogonal neighbour, if any."""
        options = maze.neighbors(self.position)
        if not options:
            return None
        return options[int(rng.integers(len(options)))]

    def move_to(self, target: Tuple[int, int], size: int,
                along_path: bool = False) -> None:
        """Apply one move: clamp, count the step, advance the cursor if on-path."""
        self.previous_position = self.position
        self.moved_along_path = along_path
        self.position = clamp_position(target, size)
        self.steps_taken += 1
        if along_path:
            self.path_index += 1

    def forget_last_move(self) -> None:
        self.previous_position = None
        self.moved_along_path = False

    def step_back(self, maze: Maze) -> bool:
        """
        Undo this tick's move, returning to the cell the agent came from.

        Refused when there was no move or that cell is now an obstacle. The
        path cursor only rewinds if the move was along the cached path.
        """
        previous = self.previous_position
        if previous is None or maze.is_obstacle(*previous):
            return False
        self.position = clamp_position(previous, maze.size)
        if self.moved_along_path:
            self.path_index = max(0, self.path_index - 1)
        self.steps_taken = max(0, self.steps_taken - 1)
        self.forget_last_move()
        return True

    def lose_patience(self) -> None:
        self.patience -= 1

    def is_exhausted(self) -> bool:
        """Check if agent has run out of patience."""
        return self.patience <= 0

    def finish(self) -> None:
        self.state = AgentState.FINISHED

    def mark_stuck(self) -> None:
        self.state = AgentState.STUCK

    @property
    def collision_rate(self) -> float:
        """Collisions per step taken."""
        if self.steps_taken == 0:
            return 0.0
        return self.collisions / self.steps_taken

    def __repr__(self) -> str:
        return (f"Agent(id={self.id}, pos={tuple(self.position)}, "
                f"state={self.state.value}, strategy={self.strategy.value})")
