"""Model package for the multi-agent maze simulation."""

from .state import (AgentSnapshot, SimulationState, SimulationStatus,
                    CompetitionResult, ExperimentResult)
from .grid import (CellType, Maze, MazeFormatError, Position, clamp_position,
                   is_valid_position, load_maze_file, parse_maze_text)
from .heuristics import (diagonal_distance, euclidean_distance,
                         get_heuristic_function, manhattan_distance)
from .pathfinding import PathfindingAlgorithm, PathResult, astar, bfs, find_path
from .generator import corridor_maze, generate_maze
from .agent import Agent, AgentState, AgentStrategy
from .collision import resolve_collisions
from .drift import ObstacleDrift, adjust_obstacle_rate
from .engine import SimulationEngine
from .experiment import run_heuristic_comparison

__all__ = [
    'AgentSnapshot',
    'SimulationState',
    'SimulationStatus',
    'CompetitionResult',
    'ExperimentResult',
    'CellType',
    'Maze',
    'MazeFormatError',
    'Position',
    'clamp_position',
    'is_valid_position',
    'load_maze_file',
    'parse_maze_text',
    'diagonal_distance',
    'euclidean_distance',
    'get_heuristic_function',
    'manhattan_distance',
    'PathfindingAlgorithm',
    'PathResult',
    'astar',
    'bfs',
    'find_path',
    'corridor_maze',
    'generate_maze',
    'Agent',
    'AgentState',
    'AgentStrategy',
    'resolve_collisions',
    'ObstacleDrift',
    'adjust_obstacle_rate',
    'SimulationEngine',
    'run_heuristic_comparison',
]
