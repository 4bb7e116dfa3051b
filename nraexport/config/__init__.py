"""Typed config models and parsers."""

from .models import (
    AppConfig,
    DatabaseConfig,
    DepthConfig,
    DepthProfileReportConfig,
    FirstLayerReportConfig,
    FractionAtThicknessReportConfig,
    LoggingConfig,
    RadiusConfig,
    ReportConfig,
    SyncConfig,
    ThicknessUntilFractionReportConfig,
    WatchConfig,
)
from .parser import load_config, parse_config, parse_report_configs
from .validators import as_mapping, ensure_choice, ensure_nonnegative, opt_mapping, required, to_float, to_int

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "DepthConfig",
    "DepthProfileReportConfig",
    "FirstLayerReportConfig",
    "FractionAtThicknessReportConfig",
    "LoggingConfig",
    "RadiusConfig",
    "ReportConfig",
    "SyncConfig",
    "ThicknessUntilFractionReportConfig",
    "WatchConfig",
    "as_mapping",
    "ensure_choice",
    "ensure_nonnegative",
    "load_config",
    "opt_mapping",
    "parse_config",
    "parse_report_configs",
    "required",
    "to_float",
    "to_int",
]
