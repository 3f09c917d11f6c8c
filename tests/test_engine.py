"""Tests for the simulation engine."""

import copy

import numpy as np
import pytest

from mouse_maze.config import AgentSpec, ConfigError, SimulationConfig
from mouse_maze.model.agent import AgentState, AgentStrategy
from mouse_maze.model.drift import disconnected_agents
from mouse_maze.model.engine import RANDOM_TURN_PROBABILITY, SimulationEngine
from mouse_maze.model.grid import CellType, Position
from mouse_maze.model.pathfinding import bfs
from mouse_maze.model.state import SimulationStatus

OPEN_6 = ["000000"] * 6

WALLED_GOAL_6 = [
    "000000",
    "000000",
    "000100",
    "001010",
    "000100",
    "000000",
]


class FixedDraw:
    """Stands in for the engine rng: fixed uniform draws, seeded integer picks."""

    def __init__(self, value, seed=0):
        self.value = value
        self._rng = np.random.default_rng(seed)

    def random(self):
        return self.value

    def integers(self, *args, **kwargs):
        return self._rng.integers(*args, **kwargs)


def write_maze(tmp_path, rows, name="maze.txt"):
    path = tmp_path / name
    path.write_text("\n".join(rows) + "\n")
    return path


def file_config(path, agent_count=2, **overrides):
    config = SimulationConfig(agent_count=agent_count, seed=5)
    config.maze.size = 6
    config.maze.file = path
    config.drift.enabled = False
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def test_single_follower_walks_shortest_path(single_agent_config):
    engine = SimulationEngine(single_agent_config)
    expected = bfs(engine.maze, (0, 0), (5, 5))

    state = engine.run()

    agent = engine.agents[0]
    assert state.status == SimulationStatus.STOPPED
    assert agent.state == AgentState.FINISHED
    assert agent.position == (5, 5)
    assert agent.steps_taken == len(expected.path) - 1
    assert engine.winner == 0
    assert state.metrics['winner'] == 0

    summary = engine.get_summary()
    assert summary['rankings'] == [0]
    assert summary['agents_finished'] == 1


def test_ticks_are_noops_unless_running(single_agent_config):
    engine = SimulationEngine(single_agent_config)
    assert engine.status == SimulationStatus.IDLE
    assert engine.tick().tick == 0

    engine.start()
    engine.tick()
    position = engine.agents[0].position

    engine.pause()
    state = engine.tick()
    assert state.tick == 1
    assert state.status == SimulationStatus.PAUSED
    assert engine.agents[0].position == position

    engine.resume()
    assert engine.tick().tick == 2


def test_reset_keeps_competition_results(single_agent_config):
    engine = SimulationEngine(single_agent_config)
    engine.run()
    assert engine.competition_results[0].wins == 1

    engine.reset()
    assert engine.status == SimulationStatus.IDLE
    assert engine.current_tick == 0
    assert engine.winner is None
    assert engine.agents[0].state == AgentState.ACTIVE

    engine.run()
    assert engine.competition_results[0].wins == 2


def test_start_after_stop_begins_a_new_race(single_agent_config):
    engine = SimulationEngine(single_agent_config)
    engine.run()
    engine.start()
    assert engine.status == SimulationStatus.RUNNING
    assert engine.current_tick == 0
    assert engine.agents[0].is_active


def test_invalid_config_is_rejected_without_side_effects(single_agent_config):
    engine = SimulationEngine(single_agent_config)
    maze, config = engine.maze, engine.config

    bad = copy.deepcopy(single_agent_config)
    bad.agent_count = 9
    with pytest.raises(ConfigError):
        engine.set_config(bad)

    assert engine.maze is maze
    assert engine.config is config


def test_finishers_ranked_by_steps_then_id():
    config = SimulationConfig(agent_count=3, seed=3)
    config.maze.size = 10
    config.drift.enabled = False
    engine = SimulationEngine(config)
    for agent, steps in zip(engine.agents, (7, 5, 5)):
        agent.position = engine.goal
        agent.steps_taken = steps

    engine.start()
    state = engine.tick()

    assert state.status == SimulationStatus.STOPPED
    assert engine.winner == 1
    assert engine.rankings == [1, 2, 0]
    result = engine.competition_results[1]
    assert result.wins == 1
    assert result.average_path_length == 5


def test_tick_limit_stops_without_winner(single_agent_config):
    single_agent_config.max_ticks = 1
    engine = SimulationEngine(single_agent_config)
    state = engine.run()
    assert state.status == SimulationStatus.STOPPED
    assert engine.winner is None
    assert engine.agents[0].is_active


def test_run_respects_tick_budget(single_agent_config):
    engine = SimulationEngine(single_agent_config)
    state = engine.run(max_ticks=2)
    assert state.tick == 2
    assert engine.status == SimulationStatus.RUNNING


def test_agents_stay_in_bounds_with_drift():
    config = SimulationConfig(agent_count=5, seed=11, max_ticks=300)
    config.maze.size = 12
    config.drift.interval = 5
    engine = SimulationEngine(config)
    engine.start()

    while not engine.is_finished():
        state = engine.tick()
        for snap in state.agents:
            assert 0 <= snap.x < 12 and 0 <= snap.y < 12
        metrics = state.metrics
        assert (metrics['active_agents'] + metrics['finished_agents']
                + metrics['stuck_agents']) == metrics['total_agents']

    assert engine.current_tick <= 300
    assert engine.drift.events >= 1 or engine.current_tick <= 5


def test_walled_off_goal_leaves_agent_stuck(tmp_path):
    config = file_config(write_maze(tmp_path, WALLED_GOAL_6), agent_count=1)
    config.agents.patience = 3
    config.agents.overrides = [AgentSpec(strategy='follower')]
    engine = SimulationEngine(config)

    state = engine.run()

    assert state.status == SimulationStatus.STOPPED
    assert engine.agents[0].state == AgentState.STUCK
    assert engine.winner is None
    assert engine.rankings == []
    assert engine.current_tick == 3


def test_goal_cut_off_mid_run_strands_every_agent(tmp_path):
    config = file_config(write_maze(tmp_path, OPEN_6))
    config.agents.patience = 3
    config.agents.overrides = [AgentSpec(strategy='follower', algorithm='bfs')] * 2
    engine = SimulationEngine(config)
    engine.start()
    engine.tick()
    assert all(a.is_active for a in engine.agents)

    for x, y in ((3, 2), (4, 3), (3, 4), (2, 3)):
        engine.maze.set_cell(x, y, CellType.OBSTACLE)
    assert disconnected_agents(engine.maze, engine.agents) == [0, 1]

    state = engine.run()

    assert state.status == SimulationStatus.STOPPED
    assert all(a.state == AgentState.STUCK for a in engine.agents)
    assert all(a.position != engine.goal for a in engine.agents)
    assert engine.winner is None
    assert engine.rankings == []
    assert engine.current_tick < config.max_ticks


def test_obstacle_goal_in_maze_file_is_rejected(tmp_path):
    rows = ["000000", "000000", "000000", "000100", "000000", "000000"]
    with pytest.raises(ValueError):
        SimulationEngine(file_config(write_maze(tmp_path, rows)))


def test_obstacle_start_gets_random_reachable_cell(tmp_path):
    rows = ["100000"] + ["000000"] * 5
    engine = SimulationEngine(file_config(write_maze(tmp_path, rows)))
    reachable = engine.maze.reachable_mask(engine.goal)
    for agent in engine.agents:
        assert agent.position != (0, 0)
        assert agent.position != engine.goal
        assert reachable[agent.position.y, agent.position.x]


def test_separate_starts(tmp_path):
    engine = SimulationEngine(file_config(write_maze(tmp_path, OPEN_6),
                                          agent_count=3, shared_start=False))
    assert engine.agents[0].position == (0, 0)
    for agent in engine.agents[1:]:
        assert agent.position != engine.goal
        assert not engine.maze.is_obstacle(*agent.position)


def test_strategy_overrides_are_applied(tmp_path):
    config = file_config(write_maze(tmp_path, OPEN_6), agent_count=3)
    config.agents.overrides = [AgentSpec(strategy=s) for s in ('random', 'competitor', 'follower')]
    engine = SimulationEngine(config)
    assert [a.strategy for a in engine.agents] == [
        AgentStrategy.RANDOM, AgentStrategy.COMPETITOR, AgentStrategy.FOLLOWER]
    assert all(a.path[-1] == engine.goal for a in engine.agents)


class TestRandomStrategy:

    @pytest.fixture
    def engine(self, tmp_path):
        config = file_config(write_maze(tmp_path, OPEN_6), agent_count=1)
        config.agents.overrides = [AgentSpec(strategy='random', algorithm='bfs')]
        engine = SimulationEngine(config)
        engine.start()
        return engine

    def test_draw_below_threshold_takes_random_neighbor(self, engine):
        agent = engine.agents[0]
        engine.rng = FixedDraw(RANDOM_TURN_PROBABILITY - 0.01)

        engine.tick()

        assert agent.position in engine.maze.neighbors((0, 0))
        assert agent.steps_taken == 1
        assert agent.path_index == 0

    @pytest.mark.parametrize("draw", [RANDOM_TURN_PROBABILITY, 0.5, 0.99])
    def test_draw_at_or_above_threshold_follows_path(self, engine, draw):
        agent = engine.agents[0]
        expected = agent.path[1]
        engine.rng = FixedDraw(draw)

        assert engine._wander(agent, engine.maze) is None
        engine.tick()

        assert agent.position == expected
        assert agent.path_index == 1

    def test_boxed_in_wanderer_has_no_random_turn(self, engine):
        agent = engine.agents[0]
        engine.maze.set_cell(1, 0, CellType.OBSTACLE)
        engine.maze.set_cell(0, 1, CellType.OBSTACLE)
        engine.rng = FixedDraw(0.0)
        assert engine._wander(agent, engine.maze) is None


class TestLeaderStrategies:

    @pytest.fixture
    def engine(self, tmp_path):
        return SimulationEngine(file_config(write_maze(tmp_path, OPEN_6)))

    def test_leader_is_closest_to_goal(self, engine):
        engine.agents[0].position = Position(0, 0)
        engine.agents[1].position = Position(2, 3)
        assert engine._find_leader().agent_id == 1

    def test_leader_tie_goes_to_lowest_id(self, engine):
        engine.agents[0].position = Position(3, 1)
        engine.agents[1].position = Position(1, 3)
        assert engine._find_leader().agent_id == 0

    def test_no_leader_when_all_inactive(self, engine):
        for agent in engine.agents:
            agent.finish()
        assert engine._find_leader() is None

    def test_follower_takes_leader_next_cell(self, engine):
        follower, leader = engine.agents
        follower.position = Position(0, 0)
        leader.position = Position(2, 3)
        leader.path = [Position(x, 3) for x in range(4)]
        view = engine._find_leader()
        grid = engine.maze.snapshot()

        assert engine._follow(follower, grid, view) == (3, 3)
        assert engine._follow(leader, grid, view) is None

    def test_follower_falls_back_when_leader_off_path(self, engine):
        follower, leader = engine.agents
        leader.position = Position(2, 3)
        leader.path = [Position(0, 0), Position(1, 0)]
        assert engine._follow(follower, engine.maze.snapshot(), engine._find_leader()) is None

    def test_competitor_heads_for_intercept_point(self, engine):
        competitor, leader = engine.agents
        leader.position = Position(1, 3)
        competitor.position = Position(3, 0)
        view = engine._find_leader()
        assert view.agent_id == leader.id

        assert engine._intercept(competitor, engine.maze.snapshot(), view) == (3, 1)

    def test_competitor_ignores_leader_next_to_goal(self, engine):
        competitor, leader = engine.agents
        leader.position = Position(2, 3)
        competitor.position = Position(0, 0)
        view = engine._find_leader()
        assert engine._intercept(competitor, engine.maze.snapshot(), view) is None
