"""Tests for the command line entry point."""

from pathlib import Path

from mouse_maze.main import apply_overrides, main, parse_args
from mouse_maze.config import SimulationConfig

ROOT = Path(__file__).resolve().parent.parent


def test_quick_run_succeeds(tmp_path, capsys):
    code = main(['--quiet', '--no-csv', '--no-snapshot', '--seed', '1',
                 '--size', '10', '--steps', '50', '--out-dir', str(tmp_path)])
    assert code == 0
    assert capsys.readouterr().out == ""


def test_run_writes_exports(tmp_path, capsys):
    code = main(['--config', str(ROOT / 'configs' / 'default.yaml'),
                 '--size', '8', '--seed', '4', '--steps', '60',
                 '--out-dir', str(tmp_path)])
    assert code == 0
    assert (tmp_path / 'simulation_log.csv').exists()
    assert (tmp_path / 'final_state.png').exists()
    assert "MAZE MICE SIMULATION REPORT" in capsys.readouterr().out


def test_imported_maze_file(tmp_path):
    code = main(['--quiet', '--no-csv', '--no-snapshot', '--seed', '2',
                 '--maze-file', str(ROOT / 'mazes' / 'sample.txt'), '--size', '6',
                 '--out-dir', str(tmp_path)])
    assert code == 0


def test_too_many_agents_fails(capsys):
    assert main(['--quiet', '--agents', '9']) == 1
    assert "agent_count" in capsys.readouterr().err


def test_missing_maze_file_fails(tmp_path, capsys):
    code = main(['--quiet', '--maze-file', str(tmp_path / 'nope.txt'),
                 '--out-dir', str(tmp_path)])
    assert code == 1
    assert "Maze file not found" in capsys.readouterr().err


def test_missing_config_fails(tmp_path):
    assert main(['--config', str(tmp_path / 'missing.yaml')]) == 1


def test_compare_heuristics(tmp_path, capsys):
    code = main(['--compare-heuristics', '--size', '8', '--seed', '3',
                 '--out-dir', str(tmp_path)])
    assert code == 0
    assert (tmp_path / 'heuristic_comparison.png').exists()
    assert (tmp_path / 'heuristic_comparison.csv').exists()
    assert "HEURISTIC COMPARISON" in capsys.readouterr().out


def test_overrides_apply_to_config(tmp_path):
    config = SimulationConfig()
    args = parse_args(['--size', '12', '--agents', '2', '--no-csv', '--gif',
                       '--seed', '9', '--out-dir', str(tmp_path)])
    apply_overrides(config, args)
    assert config.maze.size == 12
    assert config.agent_count == 2
    assert config.csv_enabled is False
    assert config.snapshot_enabled is True
    assert config.gif_enabled is True
    assert config.seed == 9
    assert config.out_dir == tmp_path
