"""Tests for solvability-guaranteed maze generation."""

import numpy as np
import pytest

from mouse_maze.model import generator
from mouse_maze.model.generator import corridor_maze, generate_maze
from mouse_maze.model.grid import CellType, center_position
from mouse_maze.model.pathfinding import PathResult, bfs


@pytest.mark.parametrize("size", [4, 5, 8, 10, 13])
@pytest.mark.parametrize("rate", [0.0, 0.3, 0.5, 0.8])
def test_generated_maze_is_solvable(size, rate):
    for seed in range(3):
        rng = np.random.default_rng(seed)
        maze = generate_maze(size, rate, (0, 0), center_position(size), rng)
        assert bfs(maze, maze.start, maze.goal).found


@pytest.mark.parametrize("size", [4, 6, 10])
def test_corner_goal_on_even_grid_is_reachable(size, rng):
    # The far corner of an even grid lies off the carved lattice
    maze = generate_maze(size, 0.3, rng=rng)
    assert maze.goal == (size - 1, size - 1)
    assert bfs(maze, maze.start, maze.goal).found


def test_endpoints_marked(rng):
    maze = generate_maze(10, 0.3, (2, 3), (7, 5), rng)
    assert maze.get_cell(2, 3) == CellType.START
    assert maze.get_cell(7, 5) == CellType.GOAL


def test_same_seed_same_maze():
    a = generate_maze(15, 0.4, rng=np.random.default_rng(99))
    b = generate_maze(15, 0.4, rng=np.random.default_rng(99))
    assert np.array_equal(a.cells, b.cells)


def test_higher_rate_only_adds_obstacles():
    sparse = generate_maze(12, 0.0, rng=np.random.default_rng(5))
    dense = generate_maze(12, 0.8, rng=np.random.default_rng(5))
    sparse_walls = sparse.cells == CellType.OBSTACLE
    dense_walls = dense.cells == CellType.OBSTACLE
    assert dense_walls.sum() > sparse_walls.sum()
    assert np.all(dense_walls[sparse_walls])


def test_high_rate_reaches_quota_when_room_allows():
    maze = generate_maze(11, 0.8, rng=np.random.default_rng(3))
    path_cells = len(bfs(maze, maze.start, maze.goal).path)
    assert maze.obstacle_count() >= min(int(11 * 11 * 0.8), 11 * 11 - path_cells) - 1


@pytest.mark.parametrize("args", [
    (1, 0.3),
    (10, -0.1),
    (10, 1.5),
    (10, 0.3, (10, 0)),
    (10, 0.3, (0, 0), (3, -1)),
])
def test_invalid_input_raises(args):
    with pytest.raises(ValueError):
        generate_maze(*args)


@pytest.mark.parametrize("start, goal", [
    ((0, 0), (5, 5)),
    ((6, 6), (1, 2)),
    ((0, 4), (4, 0)),
])
def test_corridor_maze_connects_endpoints(start, goal):
    maze = corridor_maze(7, start, goal)
    path = bfs(maze, start, goal).path
    assert path
    free = int(np.count_nonzero(maze.cells != CellType.OBSTACLE))
    assert free == len(path)


def test_falls_back_to_corridor_after_retries(monkeypatch, rng):
    calls = []

    def never_solvable(maze, start, goal):
        calls.append(1)
        return PathResult()

    monkeypatch.setattr(generator, 'bfs', never_solvable)
    maze = generate_maze(9, 0.3, (0, 0), (4, 4), rng)

    expected = corridor_maze(9, (0, 0), (4, 4))
    assert np.array_equal(maze.cells, expected.cells)
    # One protected-path search and one verification per attempt
    assert len(calls) == 2 * generator.MAX_RECURSION_DEPTH
