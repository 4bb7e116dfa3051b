"""PNG preview of depth profiles."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt
import numpy as np

from ..reports.table import ReportTable


def _ensure_outdir(outdir: str | Path) -> Path:
    path = Path(outdir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_depth_profile_png(table: ReportTable, outdir: str | Path, filename: str | None = None) -> Path:
    """Step plot of concentration over depth from a depth-profile table."""
    if not table.rows:
        raise ValueError(f"Report '{table.name}' has no rows; nothing to plot.")

    thickness = np.asarray(table.column("thickness"), dtype=float)
    depth = np.asarray(table.column("depth"), dtype=float)
    conc_col = table.columns[-1]
    conc = np.asarray(table.column(conc_col), dtype=float)
    top = depth - thickness

    path = _ensure_outdir(outdir) / (filename or f"{table.name}.png")
    fig, ax = plt.subplots(figsize=(7.2, 3.6), dpi=140)
    edges = np.append(top, depth[-1])
    ax.stairs(conc, edges, lw=1.8)
    ax.set_xlabel(f"depth [{table.units[2]}]")
    ax.set_ylabel(f"{conc_col} [{table.units[-1]}]")
    ax.set_title(table.name)
    ax.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path
