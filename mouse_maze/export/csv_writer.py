"""CSV exports: the streaming per-tick agent log and one-shot result tables."""

import csv
from dataclasses import asdict
from pathlib import Path
from typing import IO, Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..model.state import SimulationState

TICK_FIELDS = ['tick', 'agent_id', 'x', 'y', 'state', 'steps_taken',
               'collisions', 'obstacle_rate']


class CSVWriter:
    """
    Streams one row per agent per tick.

    Output format:
        tick,agent_id,x,y,state,steps_taken,collisions,obstacle_rate
        1,0,0,1,active,1,0,0.3
        ...

    The file is flushed after every tick, so an interrupted run still
    leaves a complete log up to the last tick.
    """

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self.rows_written = 0
        self._file: Optional[IO[str]] = None
        self._writer: Optional[csv.DictWriter] = None

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.output_path, 'w', newline='')
        self._writer = csv.DictWriter(self._file, fieldnames=TICK_FIELDS)
        self._writer.writeheader()

    def append(self, state: "SimulationState") -> None:
        if not self.is_open:
            self.open()
        rows = state.to_csv_rows()
        self._writer.writerows(rows)
        self._file.flush()
        self.rows_written += len(rows)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
        self._file = None
        self._writer = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def write_table(output_path: Path, records: Iterable) -> Path:
    """Write dataclass records as a CSV table, one column per field."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    rows = [asdict(r) for r in records]
    with open(output_path, 'w', newline='') as f:
        if rows:
            writer = csv.DictWriter(f, fieldnames=list(rows[0]))
            writer.writeheader()
            writer.writerows(rows)
    return output_path
