#!/usr/bin/env python3
"""
Multi-Agent Maze Mice Simulation

Several computer mice race through a generated maze toward its center,
each planning with BFS or A* and following its own strategy.

Usage:
    mouse-maze [--config configs/default.yaml] [options]

Examples:
    mouse-maze --config configs/default.yaml
    mouse-maze --size 30 --agents 5 --gif --out-dir results/
    mouse-maze --maze-file mazes/sample.txt --size 6 --no-snapshot
    mouse-maze --compare-heuristics --size 25 --seed 42
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np

from .config import SimulationConfig, load_config
from .model.engine import SimulationEngine
from .model.experiment import run_heuristic_comparison
from .export.csv_writer import CSVWriter, write_table
from .export.visualizer import Visualizer, plot_experiment_results
from .export.reporter import Reporter, format_experiment


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Multi-Agent Maze Mice Simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    mouse-maze --config configs/default.yaml
    mouse-maze --size 30 --agents 5 --gif --out-dir results/
    mouse-maze --maze-file mazes/sample.txt --size 6 --no-snapshot
    mouse-maze --compare-heuristics --size 25 --seed 42
        """
    )

    parser.add_argument('--config', type=Path, default=None,
                        help='Path to YAML configuration file (default: built-in defaults)')

    # Optional overrides
    parser.add_argument('--size', type=int, default=None,
                        help='Override maze size')
    parser.add_argument('--obstacle-rate', type=float, default=None,
                        help='Override obstacle rate (0-1)')
    parser.add_argument('--agents', type=int, default=None,
                        help='Override agent count (1-5)')
    parser.add_argument('--maze-file', type=Path, default=None,
                        help="Import a '0'/'1' maze text file instead of generating one")
    parser.add_argument('--steps', type=int, default=None,
                        help='Override max simulation ticks')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--snapshot', dest='snapshot', action='store_true', default=None,
                        help='Enable final snapshot (default)')
    parser.add_argument('--no-snapshot', dest='snapshot', action='store_false',
                        help='Disable final snapshot')

    parser.add_argument('--gif', action='store_true', default=False,
                        help='Enable GIF animation export')

    parser.add_argument('--compare-heuristics', action='store_true', default=False,
                        help='Run the heuristic comparison batch instead of a race')
    parser.add_argument('--realtime', action='store_true', default=False,
                        help='Sleep tick_interval_ms between ticks')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Enable debug logging')

    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')

    return parser.parse_args(argv)


def apply_overrides(config: SimulationConfig, args: argparse.Namespace) -> None:
    """Apply CLI overrides on top of the loaded configuration."""
    if args.size is not None:
        config.maze.size = args.size
    if args.obstacle_rate is not None:
        config.maze.obstacle_rate = args.obstacle_rate
    if args.agents is not None:
        config.agent_count = args.agents
    if args.maze_file is not None:
        config.maze.file = args.maze_file
    if args.steps is not None:
        config.max_ticks = args.steps
    if args.csv is not None:
        config.csv_enabled = args.csv
    if args.snapshot is not None:
        config.snapshot_enabled = args.snapshot
    if args.gif:
        config.gif_enabled = True
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir


def run_comparison(config: SimulationConfig) -> int:
    """Heuristic comparison batch: table on stdout, chart in the output dir."""
    rng = np.random.default_rng(config.seed)
    results = run_heuristic_comparison(config.maze.size, rng=rng)
    chart_path = config.out_dir / 'heuristic_comparison.png'
    plot_experiment_results(results, chart_path)
    table_path = None
    if config.csv_enabled:
        table_path = write_table(config.out_dir / 'heuristic_comparison.csv', results)
    if not config.quiet:
        print(format_experiment(results))
        print(f"\nChart saved: {chart_path}")
        if table_path:
            print(f"Table saved: {table_path}")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )

    # Load configuration
    try:
        config = load_config(args.config) if args.config else SimulationConfig()
        apply_overrides(config, args)
        config.validate()
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if args.compare_heuristics:
        return run_comparison(config)

    if not config.quiet:
        print("Initializing simulation...")
        print(f"  Maze: {config.maze.size}x{config.maze.size}"
              f" ({'file ' + str(config.maze.file) if config.maze.file else 'generated'})")
        print(f"  Obstacle rate: {config.maze.obstacle_rate:.2f}")
        print(f"  Agents: {config.agent_count}")
        print(f"  Max ticks: {config.max_ticks}")

    try:
        engine = SimulationEngine(config)
    except FileNotFoundError:
        print(f"Error: Maze file not found: {config.maze.file}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not config.quiet:
        for agent in engine.agents:
            print(f"  Agent {agent.id}: {agent.strategy.value}, {agent.algorithm.value}"
                  f"/{agent.heuristic_type}, start {tuple(agent.position)}")

    # Initialize exporters
    csv_writer = None
    if config.csv_enabled:
        csv_writer = CSVWriter(config.out_dir / 'simulation_log.csv')
        csv_writer.open()

    visualizer = Visualizer(engine.maze.size, engine.maze.start, engine.maze.goal)
    reporter = Reporter(str(args.config) if args.config else None, config.seed)

    if not config.quiet:
        print("\nRunning simulation...")

    engine.start()
    final_state = None
    try:
        while not engine.is_finished():
            state = engine.tick()
            final_state = state

            if csv_writer:
                csv_writer.append(state)

            # Buffer GIF frame (every N ticks to reduce memory)
            if config.gif_enabled:
                if state.tick % 5 == 0 or engine.is_finished():
                    visualizer.buffer_frame(state)

            reporter.update(state)

            if not config.quiet and state.tick % 100 == 0:
                active = int(state.metrics.get('active_agents', 0))
                finished = int(state.metrics.get('finished_agents', 0))
                print(f"  Tick {state.tick}: {active} active, {finished} finished, "
                      f"obstacle rate {state.obstacle_rate:.2f}")

            if args.realtime:
                time.sleep(config.tick_interval_ms / 1000.0)

    except KeyboardInterrupt:
        engine.pause()
        if not config.quiet:
            print("\nSimulation interrupted by user.")

    # Cleanup and final exports
    if csv_writer:
        csv_writer.close()
        if engine.competition_results:
            write_table(config.out_dir / 'competition.csv',
                        sorted(engine.competition_results.values(),
                               key=lambda r: r.agent_id))
        if not config.quiet:
            print(f"\nCSV saved: {config.out_dir / 'simulation_log.csv'}")

    if config.snapshot_enabled and final_state:
        snapshot_path = config.out_dir / 'final_state.png'
        visualizer.save_snapshot(final_state, snapshot_path)
        if not config.quiet:
            print(f"Snapshot saved: {snapshot_path}")

    if config.gif_enabled:
        gif_path = config.out_dir / 'simulation.gif'
        if not config.quiet:
            print(f"Generating GIF ({len(visualizer.frames)} frames)...")
        visualizer.generate_gif(gif_path)
        if not config.quiet:
            print(f"Animation saved: {gif_path}")

    if not config.quiet and final_state:
        report = reporter.generate_summary(
            final_state,
            list(engine.competition_results.values()),
            config.out_dir,
            config.csv_enabled,
            config.snapshot_enabled,
            config.gif_enabled
        )
        print(report)

    return 0


if __name__ == '__main__':
    sys.exit(main())
