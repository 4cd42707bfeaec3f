from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np


class DatasetError(ValueError):
    """Raised when a dataset file cannot be parsed."""


@dataclass(frozen=True)
class Dataset:
    points: np.ndarray
    labels: Tuple[str, ...]
    header: Tuple[str, ...]

    @property
    def dimension(self) -> int:
        return int(self.points.shape[1])

    def __len__(self) -> int:
        return int(self.points.shape[0])


def _leading_numeric(fields: List[str]) -> int:
    count = 0
    for value in fields:
        try:
            float(value)
        except ValueError:
            break
        count += 1
    return count


def load_dataset(path: str | Path, *, dimension: Optional[int] = None) -> Dataset:
    """Read a CSV with a header row, ``D`` numeric columns and a label column.

    When ``dimension`` is omitted it is inferred from the first data row as
    the number of leading numeric fields. Rows without a label column are
    labelled by their row number.
    """

    path = Path(path)
    if not path.is_file():
        raise DatasetError(f"Dataset '{path}' not found.")

    rows: List[List[float]] = []
    labels: List[str] = []
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle)
        header = tuple(next(reader, ()))
        for line_no, fields in enumerate(reader, start=2):
            fields = [field.strip() for field in fields]
            if not fields or all(field == "" for field in fields):
                continue
            if dimension is None:
                dimension = _leading_numeric(fields)
                if dimension == 0:
                    raise DatasetError(f"{path}:{line_no}: no numeric columns found.")
            if len(fields) < dimension:
                raise DatasetError(
                    f"{path}:{line_no}: expected {dimension} numeric columns, found {len(fields)} fields."
                )
            try:
                rows.append([float(value) for value in fields[:dimension]])
            except ValueError as exc:
                raise DatasetError(f"{path}:{line_no}: {exc}") from exc
            label = ",".join(fields[dimension:]) if len(fields) > dimension else str(len(labels))
            labels.append(label)

    if not rows:
        raise DatasetError(f"Dataset '{path}' contains no data rows.")
    points = np.asarray(rows, dtype=np.float64)
    if not np.all(np.isfinite(points)):
        raise DatasetError(f"Dataset '{path}' contains non-finite coordinates.")
    return Dataset(points=points, labels=tuple(labels), header=header)


def parse_point(raw: str, *, dimension: int) -> np.ndarray:
    """Parse ``"x1,x2,..."`` into a point of the given dimension."""

    try:
        values = [float(value) for value in raw.split(",") if value.strip()]
    except ValueError as exc:
        raise DatasetError(f"Invalid point '{raw}': {exc}") from exc
    if len(values) != dimension:
        raise DatasetError(f"Point '{raw}' has {len(values)} coordinates, expected {dimension}.")
    return np.asarray(values, dtype=np.float64)


__all__ = ["Dataset", "DatasetError", "load_dataset", "parse_point"]
