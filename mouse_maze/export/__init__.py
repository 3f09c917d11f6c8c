"""I/O package for the maze simulation."""

from .csv_writer import CSVWriter, write_table
from .visualizer import Visualizer, plot_experiment_results
from .reporter import Reporter, format_competition, format_experiment

__all__ = [
    'CSVWriter',
    'write_table',
    'Visualizer',
    'plot_experiment_results',
    'Reporter',
    'format_competition',
    'format_experiment',
]
