"""Tests for heuristic functions and the selection policy."""

import math

import pytest

from mouse_maze.model.heuristics import (diagonal_distance, euclidean_distance,
                                         get_heuristic_function,
                                         manhattan_distance)


def test_manhattan():
    assert manhattan_distance((0, 0), (3, 4)) == 7


def test_euclidean():
    assert euclidean_distance((0, 0), (3, 4)) == pytest.approx(5.0)


def test_diagonal_is_octile_distance():
    # 3 straight steps plus 3 diagonal ones
    assert diagonal_distance((0, 0), (6, 3)) == pytest.approx(3 + 3 * math.sqrt(2))


@pytest.mark.parametrize("heuristic", [manhattan_distance, euclidean_distance, diagonal_distance])
@pytest.mark.parametrize("current, goal", [
    (None, (1, 1)),
    ((1, 1), None),
    ((1,), (1, 1)),
    (("a", 1), (1, 1)),
    ((float('nan'), 0), (1, 1)),
])
def test_malformed_input_returns_zero(heuristic, current, goal):
    assert heuristic(current, goal) == 0


@pytest.mark.parametrize("heuristic", [euclidean_distance, diagonal_distance])
def test_never_exceeds_manhattan(heuristic):
    for goal in [(0, 0), (5, 1), (2, 7), (9, 9)]:
        assert heuristic((0, 0), goal) <= manhattan_distance((0, 0), goal) + 1e-9


@pytest.mark.parametrize("rate, expected", [
    (0.05, manhattan_distance),
    (0.19, manhattan_distance),
    (0.2, euclidean_distance),
    (0.25, euclidean_distance),
    (0.4, diagonal_distance),
    (0.6, diagonal_distance),
])
def test_auto_selection_by_obstacle_rate(rate, expected):
    assert get_heuristic_function(rate) is expected
    assert get_heuristic_function(rate, 'auto') is expected


def test_explicit_choice_overrides_rate():
    assert get_heuristic_function(0.05, 'diagonal') is diagonal_distance
    assert get_heuristic_function(0.6, 'manhattan') is manhattan_distance


def test_unknown_name_falls_back_to_manhattan():
    assert get_heuristic_function(0.6, 'chebyshev') is manhattan_distance
