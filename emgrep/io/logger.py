"""CSV sink for exporting set history and envelope traces."""
from __future__ import annotations
import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping


@dataclass
class CSVLogger:
    """CSV writer for dict rows with fixed headers; usable as a context manager."""
    path: Path
    fieldnames: list[str]
    append: bool = False

    def __post_init__(self):
        self.path = Path(self.path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not (self.append and self.path.exists() and self.path.stat().st_size > 0)
        self._fh = open(self.path, 'a' if self.append else 'w', newline='')
        self._writer = csv.DictWriter(self._fh, fieldnames=self.fieldnames, extrasaction='ignore')
        if write_header:
            self._writer.writeheader()

    def write(self, row: Mapping[str, object]):
        """Write a single row and flush immediately."""
        self._writer.writerow(row)
        self._fh.flush()

    def write_many(self, rows: Iterable[Mapping[str, object]]) -> int:
        n = 0
        for row in rows:
            self._writer.writerow(row)
            n += 1
        self._fh.flush()
        return n

    def close(self):
        self._fh.close()

    def __enter__(self) -> "CSVLogger":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
