"""Tabular report payload shared by all report kinds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ReportTable:
    """Units row, column-name row and one row per observation."""

    name: str
    units: list[str]
    columns: list[str]
    rows: list[list[Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.units) != len(self.columns):
            raise ValueError(f"units ({len(self.units)}) and columns ({len(self.columns)}) must have the same length.")

    def add_row(self, *values: Any) -> None:
        if len(values) != len(self.columns):
            raise ValueError(f"row has {len(values)} values, expected {len(self.columns)}.")
        self.rows.append(list(values))

    def column(self, name: str) -> list[Any]:
        idx = self.columns.index(name)
        return [row[idx] for row in self.rows]
