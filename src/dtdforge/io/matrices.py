"""CSV readers and JSON writers for labelled expression matrices."""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from dtdforge.core.errors import DimensionMismatch


@dataclass
class LabeledMatrix:
    """Dense matrix with row and column names."""

    values: np.ndarray
    row_names: List[str] = field(default_factory=list)
    col_names: List[str] = field(default_factory=list)

    @property
    def shape(self):
        return self.values.shape


def _parse_row(row: Sequence[str], path: Path, line: int) -> List[float]:
    try:
        return [float(cell) for cell in row]
    except ValueError:
        raise ValueError(f"{path}:{line}: non-numeric value in row {list(row)!r}")


def read_matrix(path: Union[str, Path]) -> LabeledMatrix:
    """Read a matrix CSV: header row of column names, then one named row per line."""
    path = Path(path)
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        try:
            header = next(reader)
        except StopIteration:
            raise ValueError(f"Matrix file {path} is empty.")

        col_names = [name.strip() for name in header[1:]]
        row_names: List[str] = []
        rows: List[List[float]] = []
        for line, row in enumerate(reader, start=2):
            if not row or all(not cell.strip() for cell in row):
                continue
            if len(row) != len(header):
                raise DimensionMismatch(
                    f"{path}:{line}: expected {len(header)} fields, got {len(row)}"
                )
            row_names.append(row[0].strip())
            rows.append(_parse_row(row[1:], path, line))

    if not rows:
        raise ValueError(f"Matrix file {path} has no data rows.")
    return LabeledMatrix(values=np.array(rows, dtype=float), row_names=row_names, col_names=col_names)


def read_vector(path: Union[str, Path]) -> LabeledMatrix:
    """Read a (name, value) CSV; a non-numeric first row is treated as header."""
    path = Path(path)
    names: List[str] = []
    values: List[float] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        for line, row in enumerate(csv.reader(f), start=1):
            if not row or all(not cell.strip() for cell in row):
                continue
            if len(row) != 2:
                raise DimensionMismatch(f"{path}:{line}: expected 2 fields, got {len(row)}")
            try:
                value = float(row[1])
            except ValueError:
                if line == 1:
                    continue
                raise ValueError(f"{path}:{line}: non-numeric value {row[1]!r}")
            names.append(row[0].strip())
            values.append(value)

    return LabeledMatrix(values=np.array(values, dtype=float)[:, None], row_names=names, col_names=["g"])


def write_matrix(path: Union[str, Path], matrix: LabeledMatrix, corner: str = "") -> None:
    path = Path(path)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([corner] + list(matrix.col_names))
        for name, row in zip(matrix.row_names, matrix.values):
            writer.writerow([name] + [repr(float(v)) for v in row])


def check_row_names(reference: Sequence[str], other: Sequence[str], label: str) -> None:
    """Raise if two non-empty name lists disagree."""
    if reference and other and list(reference) != list(other):
        raise DimensionMismatch(f"row names of {label} do not match the reference genes")


def write_result(path: Union[str, Path], payload: Dict[str, Any]) -> None:
    """Write a JSON result, converting numpy values."""
    Path(path).write_text(json.dumps(_to_builtin(payload), indent=2), encoding="utf-8")


def _to_builtin(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {str(k): _to_builtin(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_builtin(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    return obj


def named_vector(names: Optional[Sequence[str]], values: np.ndarray) -> Dict[str, float]:
    """Map names to values (1-based indices when names are missing)."""
    if not names:
        names = [str(i + 1) for i in range(len(values))]
    return {name: float(v) for name, v in zip(names, values)}


__all__ = [
    "LabeledMatrix",
    "read_matrix",
    "read_vector",
    "write_matrix",
    "write_result",
    "check_row_names",
    "named_vector",
]
