"""State snapshot and statistics dataclasses for the maze simulation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

import numpy as np


class SimulationStatus(Enum):
    """Global run state of the engine."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass(frozen=True)
class AgentSnapshot:
    """Immutable snapshot of an agent's state at a given tick."""
    agent_id: int
    x: int
    y: int
    state: str  # "active", "finished", "stuck"
    strategy: str
    steps_taken: int
    collisions: int
    path: Tuple[Tuple[int, int], ...]
    explored_count: int
    explored: Tuple[Tuple[int, int], ...] = ()


@dataclass
class SimulationState:
    """Complete snapshot of simulation state at a given tick."""
    tick: int
    status: SimulationStatus
    agents: List[AgentSnapshot]
    grid: np.ndarray        # Copy of the cell array
    obstacle_rate: float
    metrics: Dict[str, float]
    collisions: List[List[int]] = field(default_factory=list)

    def to_csv_rows(self) -> List[Dict]:
        """Convert to CSV-compatible format."""
        return [
            {
                "tick": self.tick,
                "agent_id": a.agent_id,
                "x": a.x,
                "y": a.y,
                "state": a.state,
                "steps_taken": a.steps_taken,
                "collisions": a.collisions,
                "obstacle_rate": round(self.obstacle_rate, 4),
            }
            for a in self.agents
        ]


@dataclass
class CompetitionResult:
    """Rolling statistics over the races an agent has won."""
    agent_id: int
    wins: int = 0
    average_path_length: float = 0.0
    average_explored_nodes: float = 0.0
    average_pathfinding_time: float = 0.0
    collision_rate: float = 0.0

    def record_win(self, path_length: int, explored_nodes: int,
                   pathfinding_time: float, collision_rate: float) -> None:
        """Fold one more win into the running means."""
        self.wins += 1
        n = self.wins
        self.average_path_length += (path_length - self.average_path_length) / n
        self.average_explored_nodes += (explored_nodes - self.average_explored_nodes) / n
        self.average_pathfinding_time += (pathfinding_time - self.average_pathfinding_time) / n
        self.collision_rate += (collision_rate - self.collision_rate) / n


@dataclass(frozen=True)
class ExperimentResult:
    """A* path lengths per heuristic on one generated maze."""
    obstacle_rate: float
    manhattan_nodes: int
    euclidean_nodes: int
    diagonal_nodes: int
    optimal_nodes: int
    manhattan_explored: int = 0
    euclidean_explored: int = 0
    diagonal_explored: int = 0
