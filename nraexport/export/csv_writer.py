"""Semicolon-delimited CSV writer for report tables."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from ..reports.table import ReportTable

DELIMITER = ";"
EXTENSION = ".csv"


def _ensure_outdir(outdir: str | Path) -> Path:
    path = Path(outdir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        return f"{value:.12g}"
    return str(value)


def save_report_csv(table: ReportTable, outdir: str | Path, filename: str | None = None) -> Path:
    """Write units row, column row and data rows to ``<outdir>/<name>.csv``."""
    path = _ensure_outdir(outdir) / (filename or f"{table.name}{EXTENSION}")
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, delimiter=DELIMITER)
        writer.writerow(table.units)
        writer.writerow(table.columns)
        for row in table.rows:
            writer.writerow([_format(value) for value in row])
    return path
