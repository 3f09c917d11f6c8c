"""Summary report generation for the maze simulation."""

from typing import Dict, List, Optional, Sequence, TYPE_CHECKING
from pathlib import Path

if TYPE_CHECKING:
    from ..model.state import CompetitionResult, ExperimentResult, SimulationState


class Reporter:
    """Accumulates per-tick metrics and renders the text race report."""

    def __init__(self, config_path: Optional[str], seed: Optional[int]):
        self.config_path = config_path
        self.seed = seed
        self.tick_metrics: List[Dict] = []
        self.collision_ticks = 0
        self.peak_collisions = 0
        self.min_obstacle_rate: Optional[float] = None
        self.max_obstacle_rate: Optional[float] = None

    def update(self, state: "SimulationState") -> None:
        """Accumulate metrics per tick."""
        self.tick_metrics.append(state.metrics.copy())

        if state.collisions:
            self.collision_ticks += 1
            involved = sum(len(group) for group in state.collisions)
            self.peak_collisions = max(self.peak_collisions, involved)

        rate = state.obstacle_rate
        if self.min_obstacle_rate is None or rate < self.min_obstacle_rate:
            self.min_obstacle_rate = rate
        if self.max_obstacle_rate is None or rate > self.max_obstacle_rate:
            self.max_obstacle_rate = rate

    def generate_summary(self, final_state: "SimulationState",
                         competition: Sequence["CompetitionResult"],
                         output_dir: Path,
                         csv_enabled: bool,
                         snapshot_enabled: bool,
                         gif_enabled: bool) -> str:
        """Returns formatted text report."""
        metrics = final_state.metrics
        winner = int(metrics.get('winner', -1))

        lines = [
            "",
            "=" * 80,
            "                      MAZE MICE SIMULATION REPORT",
            "=" * 80,
            f"Configuration: {self.config_path or '(defaults)'}",
            f"Random Seed: {self.seed if self.seed is not None else 'None (random)'}",
            "",
            "RACE RESULT",
            "-" * 40,
            f"Total Ticks:           {final_state.tick}",
            f"Status:                {final_state.status.value}",
            f"Winner:                {'agent ' + str(winner) if winner >= 0 else '(none)'}",
            f"Finished / Stuck:      {int(metrics.get('finished_agents', 0))} / "
            f"{int(metrics.get('stuck_agents', 0))} of {int(metrics.get('total_agents', 0))}",
            f"Collisions:            {int(metrics.get('total_collisions', 0))} "
            f"over {self.collision_ticks} ticks (peak {self.peak_collisions} agents)",
            f"Obstacle Rate:         {final_state.obstacle_rate:.2f} "
            f"(range {self._rate_range()}, {int(metrics.get('drift_events', 0))} drift events)",
            "",
            "AGENTS",
            "-" * 40,
            f"{'id':>3}  {'strategy':<11}{'state':<10}{'steps':>6}{'collisions':>12}{'explored':>10}",
        ]
        for a in final_state.agents:
            lines.append(f"{a.agent_id:>3}  {a.strategy:<11}{a.state:<10}"
                         f"{a.steps_taken:>6}{a.collisions:>12}{a.explored_count:>10}")

        lines += ["", "COMPETITION TABLE", "-" * 40]
        lines += format_competition(competition)

        lines += ["", "OUTPUT FILES", "-" * 40]
        if csv_enabled:
            lines.append(f"CSV Log:    {output_dir / 'simulation_log.csv'}")
        else:
            lines.append("CSV Log:    (disabled)")

        if snapshot_enabled:
            lines.append(f"Snapshot:   {output_dir / 'final_state.png'}")
        else:
            lines.append("Snapshot:   (disabled)")

        if gif_enabled:
            lines.append(f"Animation:  {output_dir / 'simulation.gif'}")
        else:
            lines.append("Animation:  (disabled)")

        lines.append("=" * 80)

        return "\n".join(lines)

    def _rate_range(self) -> str:
        if self.min_obstacle_rate is None:
            return "n/a"
        return f"{self.min_obstacle_rate:.2f}-{self.max_obstacle_rate:.2f}"


def format_competition(results: Sequence["CompetitionResult"]) -> List[str]:
    """Table rows for the rolling competition statistics."""
    if not results:
        return ["(no races won yet)"]
    lines = [f"{'id':>3}{'wins':>6}{'avg path':>10}{'avg explored':>14}"
             f"{'avg ms':>9}{'coll/step':>11}"]
    for r in sorted(results, key=lambda r: (-r.wins, r.agent_id)):
        lines.append(f"{r.agent_id:>3}{r.wins:>6}{r.average_path_length:>10.1f}"
                     f"{r.average_explored_nodes:>14.1f}{r.average_pathfinding_time:>9.2f}"
                     f"{r.collision_rate:>11.3f}")
    return lines


def format_experiment(results: Sequence["ExperimentResult"]) -> str:
    """Plain-text table of a heuristic comparison run."""
    lines = [
        "",
        "HEURISTIC COMPARISON (A* path length / explored nodes)",
        "-" * 72,
        f"{'rate':>5}{'manhattan':>16}{'euclidean':>16}{'diagonal':>16}{'optimal':>10}",
    ]
    for r in results:
        lines.append(
            f"{r.obstacle_rate:>5.1f}"
            f"{r.manhattan_nodes:>8} / {r.manhattan_explored:<5}"
            f"{r.euclidean_nodes:>8} / {r.euclidean_explored:<5}"
            f"{r.diagonal_nodes:>8} / {r.diagonal_explored:<5}"
            f"{r.optimal_nodes:>10}"
        )
    return "\n".join(lines)
