"""Simulation engine for the multi-agent maze race."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

import numpy as np

from .agent import Agent, AgentState, AgentStrategy
from .collision import resolve_collisions
from .drift import ObstacleDrift
from .generator import generate_maze
from .grid import Maze, Position, clamp_position, is_valid_position, load_maze_file
from .heuristics import euclidean_distance
from .pathfinding import PathfindingAlgorithm, find_path
from .state import (AgentSnapshot, CompetitionResult, SimulationState,
                    SimulationStatus)

if TYPE_CHECKING:
    from ..config import SimulationConfig

logger = logging.getLogger(__name__)

RANDOM_TURN_PROBABILITY = 0.10
INTERCEPT_LOOKAHEAD = 3


@dataclass(frozen=True)
class _LeaderView:
    """Leader state frozen at the start of a tick."""
    agent_id: int
    position: Position
    path: Tuple[Position, ...]
    algorithm: PathfindingAlgorithm
    heuristic_type: str


class SimulationEngine:
    """
    Orchestrates the discrete-time race toward the shared goal.

    Implements:
    1. Maze generation or import and agent creation
    2. Per-tick strategy selection, path validation and replanning
    3. Collision resolution after every agent has moved
    4. Termination, ranking and rolling competition statistics
    5. Obstacle drift between ticks

    The engine is the only owner of the maze and agents; they change only
    through ``tick`` and the explicit commands.
    """

    def __init__(self, config: "SimulationConfig"):
        config.validate()
        self.config = config
        self.rng = np.random.default_rng(config.seed)
        self.competition_results: Dict[int, CompetitionResult] = {}
        self.reset()

    # Commands

    def reset(self) -> None:
        """Discard all agents, rebuild the maze and return to IDLE."""
        self.status = SimulationStatus.IDLE
        self.current_tick = 0
        self.obstacle_rate = self.config.maze.obstacle_rate
        self.goal = Position(*self.config.goal)
        self.maze = self._build_maze()
        if self.config.maze.file is not None:
            self.obstacle_rate = self.maze.obstacle_rate()
        self.agents: List[Agent] = self._spawn_agents()
        self.winner: Optional[int] = None
        self.rankings: List[int] = []
        self.total_collisions = 0
        self.last_collisions: List[List[int]] = []

        drift = self.config.drift
        self.drift: Optional[ObstacleDrift] = None
        if drift.enabled:
            self.drift = ObstacleDrift(drift.interval, drift.max_delta,
                                       drift.min_rate, drift.max_rate)

    def start(self) -> None:
        if self.status == SimulationStatus.STOPPED:
            self.reset()
        if self.status == SimulationStatus.IDLE:
            logger.info("Race started with %d agents on a %dx%d maze",
                        len(self.agents), self.maze.size, self.maze.size)
        self.status = SimulationStatus.RUNNING

    def pause(self) -> None:
        if self.status == SimulationStatus.RUNNING:
            self.status = SimulationStatus.PAUSED

    def resume(self) -> None:
        if self.status == SimulationStatus.PAUSED:
            self.status = SimulationStatus.RUNNING

    def set_config(self, config: "SimulationConfig") -> None:
        """Validate and install a new configuration, then reset."""
        config.validate()
        self.config = config
        self.reset()

    def run(self, max_ticks: Optional[int] = None) -> SimulationState:
        """Start and tick until the race stops or ``max_ticks`` ticks pass."""
        self.start()
        state = self._create_state_snapshot()
        ticks = 0
        while self.status == SimulationStatus.RUNNING:
            if max_ticks is not None and ticks >= max_ticks:
                break
            state = self.tick()
            ticks += 1
        return state

    def is_finished(self) -> bool:
        return self.status == SimulationStatus.STOPPED

    # Setup

    def _build_maze(self) -> Maze:
        maze_config = self.config.maze
        if maze_config.file is not None:
            maze = load_maze_file(maze_config.file, maze_config.size,
                                  maze_config.start, self.goal)
            logger.info("Loaded %dx%d maze from %s", maze.size, maze.size, maze_config.file)
            return maze
        return generate_maze(maze_config.size, maze_config.obstacle_rate,
                             maze_config.start, self.goal, self.rng)

    def _spawn_agents(self) -> List[Agent]:
        """Create agents at their starts and give each an initial plan."""
        reachable = self.maze.reachable_mask(self.goal)
        configured = self._resolve_start(Position(*self.config.maze.start), reachable)
        strategies = list(AgentStrategy)

        agents = []
        for i in range(self.config.agent_count):
            if i == 0 or self.config.shared_start:
                start = configured
            else:
                start = self._random_start(reachable)

            spec = self.config.agents.spec_for(i)
            if spec.strategy is not None:
                strategy = AgentStrategy(spec.strategy)
            else:
                strategy = strategies[int(self.rng.integers(len(strategies)))]

            agent = Agent(
                agent_id=i,
                position=start,
                strategy=strategy,
                heuristic_type=spec.heuristic,
                algorithm=PathfindingAlgorithm(spec.algorithm),
                patience=self.config.agents.patience
            )
            agent.adopt_plan(agent.plan(self.maze, self.goal))
            agents.append(agent)
            logger.debug("Spawned %r", agent)
        return agents

    def _resolve_start(self, start: Position, reachable: np.ndarray) -> Position:
        """Keep the configured start unless it is the goal or an obstacle."""
        if start != self.goal and not self.maze.is_obstacle(*start):
            return start
        return self._random_start(reachable)

    def _random_start(self, reachable: np.ndarray) -> Position:
        """Random free cell, preferring cells with a route to the goal."""
        for mask in (reachable, self.maze.free_mask()):
            mask = mask.copy()
            mask[self.goal.y, self.goal.x] = False
            cells = np.argwhere(mask)
            if len(cells):
                y, x = cells[int(self.rng.integers(len(cells)))]
                return Position(int(x), int(y))
        return self.goal

    # Tick

    def tick(self) -> SimulationState:
        """
        Advance every active agent by at most one cell.

        1. Freeze the grid and the leader for the whole tick
        2. Per agent: goal check, strategy candidate, cached path or replan
        3. Resolve collisions
        4. Detect the end of the race and rank finishers
        5. Drift the obstacle rate when due
        """
        if self.status != SimulationStatus.RUNNING:
            return self._create_state_snapshot()

        self.current_tick += 1
        grid = self.maze.snapshot()
        leader = self._find_leader()

        for agent in self.agents:
            agent.forget_last_move()
            if agent.is_active:
                self._update_agent(agent, grid, leader)

        for agent in self.agents:
            agent.position = clamp_position(agent.position, grid.size)

        self.last_collisions = resolve_collisions(self.agents, grid, self.rng)
        self.total_collisions += sum(len(group) - 1 for group in self.last_collisions)

        if not any(agent.is_active for agent in self.agents):
            self._finish_race()
        elif self.current_tick >= self.config.max_ticks:
            self.status = SimulationStatus.STOPPED
            logger.info("Tick limit %d reached with %d agents still active",
                        self.config.max_ticks,
                        sum(1 for a in self.agents if a.is_active))
        elif self.drift is not None:
            new_rate = self.drift.maybe_apply(self.current_tick, self.maze,
                                              self.obstacle_rate, self.agents, self.rng)
            if new_rate is not None:
                self.obstacle_rate = new_rate

        return self._create_state_snapshot()

    def _find_leader(self) -> Optional[_LeaderView]:
        """Active agent closest to the goal by Euclidean distance; lowest id on ties."""
        leader = None
        best = np.inf
        for agent in self.agents:
            if not agent.is_active:
                continue
            distance = euclidean_distance(agent.position, self.goal)
            if distance < best:
                leader, best = agent, distance
        if leader is None:
            return None
        return _LeaderView(leader.id, leader.position, tuple(leader.path),
                           leader.algorithm, leader.heuristic_type)

    def _update_agent(self, agent: Agent, grid: Maze,
                      leader: Optional[_LeaderView]) -> None:
        if agent.position == self.goal:
            agent.finish()
            logger.info("Agent %d reached the goal in %d steps", agent.id, agent.steps_taken)
            return

        candidate = self._strategy_target(agent, grid, leader)
        along_path = False

        if candidate is None:
            candidate = agent.next_waypoint(grid)
            if candidate is not None:
                along_path = True
            else:
                result = agent.plan(grid, self.goal)
                agent.adopt_plan(result)
                if result.found:
                    candidate = agent.next_waypoint(grid)
                    along_path = candidate is not None
                else:
                    candidate = agent.random_move(grid, self.rng)
                    agent.lose_patience()
                    if candidate is None or agent.is_exhausted():
                        agent.mark_stuck()
                        logger.info("Agent %d is stuck at %s", agent.id,
                                    tuple(agent.position))
                        return

        if candidate is not None:
            agent.move_to(candidate, grid.size, along_path)

    def _strategy_target(self, agent: Agent, grid: Maze,
                         leader: Optional[_LeaderView]) -> Optional[Position]:
        if agent.strategy == AgentStrategy.FOLLOWER:
            return self._follow(agent, grid, leader)
        elif agent.strategy == AgentStrategy.COMPETITOR:
            return self._intercept(agent, grid, leader)
        elif agent.strategy == AgentStrategy.RANDOM:
            return self._wander(agent, grid)
        return None

    def _follow(self, agent: Agent, grid: Maze,
                leader: Optional[_LeaderView]) -> Optional[Position]:
        """The cell after the leader's position on the leader's own path."""
        if leader is None or leader.agent_id == agent.id:
            return None
        try:
            index = leader.path.index(leader.position)
        except ValueError:
            return None
        if index + 1 >= len(leader.path):
            return None
        target = leader.path[index + 1]
        if not is_valid_position(target, grid.size) or grid.is_obstacle(*target):
            return None
        return target

    def _intercept(self, agent: Agent, grid: Maze,
                   leader: Optional[_LeaderView]) -> Optional[Position]:
        """First step toward a point a few cells ahead on the leader's route."""
        if leader is None or leader.agent_id == agent.id:
            return None
        lead_route = find_path(grid, leader.position, self.goal,
                               leader.algorithm, leader.heuristic_type).path
        if len(lead_route) <= 2:
            return None
        intercept = lead_route[min(INTERCEPT_LOOKAHEAD, len(lead_route) - 1)]
        own_route = agent.plan(grid, intercept).path
        if len(own_route) <= 1:
            return None
        return own_route[1]

    def _wander(self, agent: Agent, grid: Maze) -> Optional[Position]:
        if self.rng.random() < RANDOM_TURN_PROBABILITY:
            return agent.random_move(grid, self.rng)
        return None

    def _finish_race(self) -> None:
        """Rank agents on the goal by (steps, id) and record the winner."""
        self.status = SimulationStatus.STOPPED
        finishers = sorted(
            (a for a in self.agents if a.position == self.goal),
            key=lambda a: (a.steps_taken, a.id)
        )
        self.rankings = [a.id for a in finishers]
        if not finishers:
            logger.info("Race over after %d ticks with no finisher", self.current_tick)
            return

        winner = finishers[0]
        self.winner = winner.id
        result = self.competition_results.setdefault(winner.id, CompetitionResult(winner.id))
        result.record_win(
            path_length=winner.steps_taken,
            explored_nodes=len(winner.explored_nodes),
            pathfinding_time=winner.pathfinding_time,
            collision_rate=winner.collision_rate
        )
        logger.info("Race over after %d ticks, winner: agent %d (%d steps)",
                    self.current_tick, winner.id, winner.steps_taken)

    # Reporting

    def _create_state_snapshot(self) -> SimulationState:
        """Create immutable snapshot of current simulation state."""
        agent_snapshots = [
            AgentSnapshot(
                agent_id=a.id,
                x=a.position.x,
                y=a.position.y,
                state=a.state.value,
                strategy=a.strategy.value,
                steps_taken=a.steps_taken,
                collisions=a.collisions,
                path=tuple(tuple(p) for p in a.path),
                explored_count=len(a.explored_nodes),
                explored=tuple(tuple(p) for p in a.explored_nodes)
            )
            for a in self.agents
        ]

        metrics = {
            'active_agents': sum(1 for a in self.agents if a.state == AgentState.ACTIVE),
            'finished_agents': sum(1 for a in self.agents if a.state == AgentState.FINISHED),
            'stuck_agents': sum(1 for a in self.agents if a.state == AgentState.STUCK),
            'total_agents': len(self.agents),
            'total_collisions': self.total_collisions,
            'drift_events': self.drift.events if self.drift is not None else 0,
            'winner': self.winner if self.winner is not None else -1,
        }

        return SimulationState(
            tick=self.current_tick,
            status=self.status,
            agents=agent_snapshots,
            grid=self.maze.cells.copy(),
            obstacle_rate=self.obstacle_rate,
            metrics=metrics,
            collisions=[list(group) for group in self.last_collisions]
        )

    def get_summary(self) -> Dict:
        """Get summary statistics for the race."""
        return {
            'total_ticks': self.current_tick,
            'status': self.status.value,
            'winner': self.winner,
            'rankings': list(self.rankings),
            'agents_finished': sum(1 for a in self.agents if a.state == AgentState.FINISHED),
            'agents_stuck': sum(1 for a in self.agents if a.state == AgentState.STUCK),
            'agents_total': len(self.agents),
            'total_collisions': self.total_collisions,
            'obstacle_rate': self.obstacle_rate,
        }
