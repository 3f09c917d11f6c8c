"""Configuration dataclasses and YAML loader for the maze simulation."""

from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Any, Optional
from pathlib import Path
import yaml

from .model.heuristics import AUTO, HEURISTIC_TYPES

MIN_AGENTS = 1
MAX_AGENTS = 5
ALGORITHMS = ('bfs', 'astar')
STRATEGIES = ('follower', 'competitor', 'random')


class ConfigError(ValueError):
    """Raised for configuration values outside their allowed range."""


@dataclass
class MazeConfig:
    size: int = 20
    obstacle_rate: float = 0.3
    start: Tuple[int, int] = (0, 0)
    goal: Optional[Tuple[int, int]] = None  # None = grid center
    file: Optional[Path] = None


@dataclass
class DriftConfig:
    enabled: bool = True
    interval: int = 50        # ticks between rate changes
    max_delta: float = 0.05
    min_rate: float = 0.10
    max_rate: float = 0.50


@dataclass
class AgentSpec:
    """Per-agent override; unset fields use the agents section defaults."""
    heuristic: Optional[str] = None
    algorithm: Optional[str] = None
    strategy: Optional[str] = None  # None = random choice


@dataclass
class AgentConfig:
    heuristic: str = AUTO
    algorithm: str = 'astar'
    patience: int = 20
    overrides: List[AgentSpec] = field(default_factory=list)

    def spec_for(self, index: int) -> AgentSpec:
        """Resolved settings for the agent at ``index``."""
        override = self.overrides[index] if index < len(self.overrides) else AgentSpec()
        return AgentSpec(
            heuristic=override.heuristic or self.heuristic,
            algorithm=override.algorithm or self.algorithm,
            strategy=override.strategy
        )


@dataclass
class SimulationConfig:
    maze: MazeConfig = field(default_factory=MazeConfig)
    agents: AgentConfig = field(default_factory=AgentConfig)
    drift: DriftConfig = field(default_factory=DriftConfig)
    agent_count: int = 3
    max_ticks: int = 2000
    tick_interval_ms: int = 200
    shared_start: bool = True

    # Export flags (can be overridden by CLI)
    csv_enabled: bool = True
    snapshot_enabled: bool = True
    gif_enabled: bool = False
    quiet: bool = False
    seed: Optional[int] = None
    out_dir: Path = field(default_factory=lambda: Path("./output"))

    @property
    def goal(self) -> Tuple[int, int]:
        if self.maze.goal is not None:
            return tuple(self.maze.goal)
        return (self.maze.size // 2, self.maze.size // 2)

    def validate(self) -> None:
        """Raise ConfigError describing the first invalid value."""
        size = self.maze.size
        if size < 2:
            raise ConfigError(f"maze.size must be at least 2, got {size}")
        if not 0.0 <= self.maze.obstacle_rate <= 1.0:
            raise ConfigError(
                f"maze.obstacle_rate must be within [0, 1], got {self.maze.obstacle_rate}")
        for name, pos in (('start', self.maze.start), ('goal', self.goal)):
            if pos is None:
                raise ConfigError(f"maze.{name} must be an [x, y] pair, got None")
            if len(pos) != 2 or not all(0 <= c < size for c in pos):
                raise ConfigError(f"maze.{name} {tuple(pos)} is outside a {size}x{size} maze")
        if not MIN_AGENTS <= self.agent_count <= MAX_AGENTS:
            raise ConfigError(
                f"agent_count must be between {MIN_AGENTS} and {MAX_AGENTS}, "
                f"got {self.agent_count}")
        if self.max_ticks < 1:
            raise ConfigError(f"max_ticks must be positive, got {self.max_ticks}")
        if self.agents.patience < 1:
            raise ConfigError(f"agents.patience must be positive, got {self.agents.patience}")

        specs = [self.agents.spec_for(i) for i in range(self.agent_count)]
        for i, spec in enumerate(specs):
            if spec.heuristic not in HEURISTIC_TYPES + (AUTO,):
                raise ConfigError(f"Unknown heuristic for agent {i}: {spec.heuristic}")
            if spec.algorithm not in ALGORITHMS:
                raise ConfigError(f"Unknown algorithm for agent {i}: {spec.algorithm}")
            if spec.strategy is not None and spec.strategy not in STRATEGIES:
                raise ConfigError(f"Unknown strategy for agent {i}: {spec.strategy}")

        d = self.drift
        if not 0.0 <= d.min_rate <= d.max_rate <= 1.0:
            raise ConfigError(
                f"drift rates must satisfy 0 <= min_rate <= max_rate <= 1, "
                f"got {d.min_rate} and {d.max_rate}")
        if d.interval < 1:
            raise ConfigError(f"drift.interval must be positive, got {d.interval}")


def _parse_position(raw: Any, key: str) -> Optional[Tuple[int, int]]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        raw = (raw.get('x'), raw.get('y'))
    try:
        x, y = raw
        return (int(x), int(y))
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an [x, y] pair, got {raw!r}")


def _parse_overrides(overrides_raw: List[Dict]) -> List[AgentSpec]:
    """Parse per-agent overrides from raw YAML data."""
    return [
        AgentSpec(
            heuristic=o.get('heuristic'),
            algorithm=o.get('algorithm'),
            strategy=o.get('strategy')
        )
        for o in overrides_raw
    ]


def load_config(config_path: Path) -> SimulationConfig:
    """Load and validate YAML configuration file. Every section is optional."""
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    maze_raw = raw.get('maze', {})
    maze_file = maze_raw.get('file')
    maze = MazeConfig(
        size=maze_raw.get('size', 20),
        obstacle_rate=maze_raw.get('obstacle_rate', 0.3),
        start=_parse_position(maze_raw.get('start', (0, 0)), 'maze.start'),
        goal=_parse_position(maze_raw.get('goal'), 'maze.goal'),
        file=Path(maze_file) if maze_file else None
    )

    agents_raw = raw.get('agents', {})
    agents = AgentConfig(
        heuristic=agents_raw.get('heuristic', AUTO),
        algorithm=agents_raw.get('algorithm', 'astar'),
        patience=agents_raw.get('patience', 20),
        overrides=_parse_overrides(agents_raw.get('overrides', []))
    )

    drift_raw = raw.get('drift', {})
    drift = DriftConfig(
        enabled=drift_raw.get('enabled', True),
        interval=drift_raw.get('interval', 50),
        max_delta=drift_raw.get('max_delta', 0.05),
        min_rate=drift_raw.get('min_rate', 0.10),
        max_rate=drift_raw.get('max_rate', 0.50)
    )

    sim_raw = raw.get('simulation', {})

    # Parse export config (optional)
    export_raw = raw.get('export', {})

    config = SimulationConfig(
        maze=maze,
        agents=agents,
        drift=drift,
        agent_count=sim_raw.get('agent_count', 3),
        max_ticks=sim_raw.get('max_ticks', 2000),
        tick_interval_ms=sim_raw.get('tick_interval_ms', 200),
        shared_start=sim_raw.get('shared_start', True),
        seed=sim_raw.get('seed'),
        csv_enabled=export_raw.get('csv', True),
        snapshot_enabled=export_raw.get('snapshot', True),
        gif_enabled=export_raw.get('gif', False)
    )
    config.validate()
    return config
