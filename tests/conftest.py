"""Shared fixtures for the maze simulation tests."""

import numpy as np
import pytest

from mouse_maze.config import AgentSpec, SimulationConfig
from mouse_maze.model.grid import CellType, Maze


def make_maze(rows, start=(0, 0), goal=None):
    """Build a Maze from strings of '0' (empty) and '1' (obstacle)."""
    size = len(rows)
    cells = np.array([[int(c) for c in row] for row in rows], dtype=np.int8)
    maze = Maze(size, start, goal, cells)
    maze.mark_endpoints()
    return maze


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def open_maze():
    """8x8 maze without obstacles."""
    return Maze.filled(8, CellType.EMPTY, (0, 0), (7, 7))


@pytest.fixture
def block_maze():
    return make_maze(["0000", "0110", "0110", "0000"], start=(0, 0), goal=(3, 3))


@pytest.fixture
def single_agent_config():
    config = SimulationConfig(agent_count=1, seed=7)
    config.maze.size = 10
    config.maze.obstacle_rate = 0.3
    config.maze.start = (0, 0)
    config.drift.enabled = False
    config.agents.overrides = [AgentSpec(algorithm='bfs', strategy='follower')]
    return config
