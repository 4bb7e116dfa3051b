"""Analysis reports built from the export store."""

from .builders import (
    build_depth_profile_table,
    build_first_layer_table,
    build_fraction_at_thickness_table,
    build_thickness_until_fraction_table,
)
from .metrics import (
    cumulative_thickness,
    prevalence_fraction_at_thickness,
    thickness_until_prevalence_fraction,
    total_prevalence,
)
from .radius import RadiusParser
from .registry import ReportRegistry, build_default_report_registry
from .table import ReportTable

__all__ = [
    "RadiusParser",
    "ReportRegistry",
    "ReportTable",
    "build_default_report_registry",
    "build_depth_profile_table",
    "build_first_layer_table",
    "build_fraction_at_thickness_table",
    "build_thickness_until_fraction_table",
    "cumulative_thickness",
    "prevalence_fraction_at_thickness",
    "thickness_until_prevalence_fraction",
    "total_prevalence",
]
