"""Visualization and export for the maze simulation."""

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgb
from pathlib import Path
from typing import List, Sequence, Tuple, TYPE_CHECKING
from PIL import Image
import io

from ..model.grid import CellType

if TYPE_CHECKING:
    from ..model.state import ExperimentResult, SimulationState


class Visualizer:
    """
    Generates visual outputs using matplotlib.

    Supports:
    - Single PNG snapshots
    - Animated GIF compilation
    - Heuristic comparison charts
    """

    # Color scheme
    COLORS = {
        'obstacle': '#2C3E50',  # Dark blue-gray
        'floor': '#ECF0F1',     # Light gray
        'start': '#27AE60',     # Green
        'goal': '#E74C3C',      # Red
        'explored': '#D6EAF8',  # Pale blue
    }
    AGENT_COLORS = ['#FF6B6B', '#4ECDC4', '#45B7D1', '#FFA07A', '#98D8C8']

    def __init__(self, size: int, start: Tuple[int, int], goal: Tuple[int, int]):
        self.size = size
        self.start = start
        self.goal = goal
        self.frames: List[Image.Image] = []

    def agent_color(self, agent_id: int) -> str:
        return self.AGENT_COLORS[agent_id % len(self.AGENT_COLORS)]

    def _create_figure(self, state: "SimulationState",
                       show_paths: bool = True) -> plt.Figure:
        """Create matplotlib figure for state visualization."""
        fig, ax = plt.subplots(figsize=(7, 7))

        # Base layer: obstacles and floor
        base = np.ones((self.size, self.size, 3))
        base[:, :] = to_rgb(self.COLORS['floor'])
        if show_paths:
            for agent in state.agents:
                for x, y in agent.explored:
                    base[y, x] = to_rgb(self.COLORS['explored'])
        base[state.grid == CellType.OBSTACLE] = to_rgb(self.COLORS['obstacle'])
        base[state.grid == CellType.START] = to_rgb(self.COLORS['start'])
        base[state.grid == CellType.GOAL] = to_rgb(self.COLORS['goal'])

        # Image row 0 at the top matches the maze's y axis pointing down
        ax.imshow(base, origin='upper', aspect='equal',
                  extent=[-0.5, self.size - 0.5, self.size - 0.5, -0.5])

        if show_paths:
            for agent in state.agents:
                if len(agent.path) < 2:
                    continue
                xs, ys = zip(*agent.path)
                ax.plot(xs, ys, '-', color=self.agent_color(agent.agent_id),
                        linewidth=2, alpha=0.6, solid_capstyle='round')

        # Draw agents
        for agent in state.agents:
            alpha = 0.9 if agent.state == 'active' else 0.4
            ax.plot(agent.x, agent.y, 'o', color=self.agent_color(agent.agent_id),
                    markersize=max(3, 120 // self.size), alpha=alpha,
                    markeredgecolor='white', markeredgewidth=0.5)

        active_count = sum(1 for a in state.agents if a.state == 'active')
        ax.set_title(f'Tick {state.tick} | Active Agents: {active_count} | '
                     f'Obstacle Rate: {state.obstacle_rate:.0%}')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_xlim(-0.5, self.size - 0.5)
        ax.set_ylim(self.size - 0.5, -0.5)

        legend_elements = [
            plt.Line2D([0], [0], marker='o', color='w', label=f'Agent {a.agent_id} ({a.strategy})',
                       markerfacecolor=self.agent_color(a.agent_id), markersize=8)
            for a in state.agents
        ]
        legend_elements.append(
            plt.Line2D([0], [0], marker='s', color='w', label='Goal',
                       markerfacecolor=self.COLORS['goal'], markersize=8))
        ax.legend(handles=legend_elements, loc='upper left',
                  bbox_to_anchor=(1.02, 1.0), fontsize=8)

        plt.tight_layout()
        return fig

    def buffer_frame(self, state: "SimulationState") -> None:
        """Store frame for GIF generation."""
        fig = self._create_figure(state)

        # Convert to PIL Image
        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=80)
        buf.seek(0)
        img = Image.open(buf).copy()
        self.frames.append(img)
        buf.close()
        plt.close(fig)

    def save_snapshot(self, state: "SimulationState", output_path: Path) -> None:
        """Save single PNG image of current state."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig = self._create_figure(state)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

    def generate_gif(self, output_path: Path, fps: int = 5) -> None:
        """Compile buffered frames into animated GIF."""
        if not self.frames:
            return

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        duration = int(1000 / fps)  # milliseconds per frame

        self.frames[0].save(
            output_path,
            save_all=True,
            append_images=self.frames[1:],
            duration=duration,
            loop=0
        )

    def clear_frames(self) -> None:
        """Clear buffered frames."""
        self.frames.clear()


def plot_experiment_results(results: Sequence["ExperimentResult"],
                            output_path: Path) -> None:
    """Line chart of A* path length per heuristic against obstacle rate."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rates = [r.obstacle_rate for r in results]
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(rates, [r.manhattan_nodes for r in results], 'o-', label='Manhattan')
    ax.plot(rates, [r.euclidean_nodes for r in results], 's-', label='Euclidean')
    ax.plot(rates, [r.diagonal_nodes for r in results], '^-', label='Diagonal')
    ax.plot(rates, [r.optimal_nodes for r in results], 'k--', label='Optimal')
    ax.set_xlabel('Obstacle rate')
    ax.set_ylabel('Path length (cells)')
    ax.set_title('Heuristic comparison')
    ax.grid(True, alpha=0.3)
    ax.legend()
    plt.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
