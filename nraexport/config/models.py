"""Typed models for the application config file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union

DEFAULT_EXTENSIONS = [".xnra"]
DEFAULT_RADIUS_MARKERS = ["r-"]
DEFAULT_RADIUS_TERMINATORS = ["_p-", "_FeW", "-FeW"]
DEFAULT_SNAPSHOT_ELEMENTS = ["Fe", "W", "O"]


@dataclass(frozen=True)
class WatchConfig:
    """Directory tree scanned for result files."""

    root: Path
    recursive: bool = True
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    poll_interval_s: float = 2.0
    on_start: bool = True
    on_update: bool = True


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///nraexport.db"


@dataclass(frozen=True)
class SyncConfig:
    """Synchronizer tuning."""

    instance_name: str = "Main"
    settle_delay_s: float = 0.1
    dat_dirname: str = "dat"
    dat_extension: str = ".dat"
    max_workers: int = 8
    compute_max_depth: bool = False


@dataclass(frozen=True)
class DepthConfig:
    stopping_policy: Literal["initial", "remaining"] = "remaining"


@dataclass(frozen=True)
class RadiusConfig:
    """Filename tokens around the sample radius, e.g. ``r-05_FeW_Si.xnra``."""

    markers: list[str] = field(default_factory=lambda: list(DEFAULT_RADIUS_MARKERS))
    terminators: list[str] = field(default_factory=lambda: list(DEFAULT_RADIUS_TERMINATORS))


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: Path | None = None


@dataclass(frozen=True)
class FirstLayerReportConfig:
    """Layer-1 composition across many spectra."""

    name: str
    output: Path
    type: Literal["first_layer"] = "first_layer"
    files: list[Path] = field(default_factory=list)
    elements: list[str] = field(default_factory=lambda: list(DEFAULT_SNAPSHOT_ELEMENTS))


@dataclass(frozen=True)
class DepthProfileReportConfig:
    """Full layer profile of one spectrum for one element."""

    name: str
    output: Path
    file: Path
    element: str
    type: Literal["depth_profile"] = "depth_profile"
    insert_zero_layer: bool = False
    ignore_indices: list[int] = field(default_factory=list)
    ignore_last: bool = True
    plot: bool = False


@dataclass(frozen=True)
class ThicknessUntilFractionReportConfig:
    """Depth at which a prevalence fraction is reached, per spectrum."""

    name: str
    output: Path
    element: str
    threshold_fraction: float
    type: Literal["thickness_until_fraction"] = "thickness_until_fraction"
    files: list[Path] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FractionAtThicknessReportConfig:
    """Prevalence fraction reached at a fixed thickness, per spectrum."""

    name: str
    output: Path
    element: str
    threshold_thickness: float
    type: Literal["fraction_at_thickness"] = "fraction_at_thickness"
    files: list[Path] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)


ReportConfig = Union[
    FirstLayerReportConfig,
    DepthProfileReportConfig,
    ThicknessUntilFractionReportConfig,
    FractionAtThicknessReportConfig,
]


@dataclass(frozen=True)
class AppConfig:
    """Everything loaded from one YAML config file."""

    watch: WatchConfig
    config_path: Path | None = None
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    depth: DepthConfig = field(default_factory=DepthConfig)
    radius: RadiusConfig = field(default_factory=RadiusConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    reports: list[ReportConfig] = field(default_factory=list)
