"""Registry mapping report types to table builders."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Mapping

from ..storage.models import SpectrumExport
from .builders import (
    build_depth_profile_table,
    build_first_layer_table,
    build_fraction_at_thickness_table,
    build_thickness_until_fraction_table,
)
from .radius import RadiusParser
from .table import ReportTable

ReportBuilder = Callable[[Any, Mapping[str, SpectrumExport]], ReportTable]


class ReportRegistry:
    """Registry that maps normalized report types to builders."""

    def __init__(self, builders: dict[str, ReportBuilder] | None = None) -> None:
        self._builders: dict[str, ReportBuilder] = {}
        if builders:
            for report_type, builder in builders.items():
                self.register(report_type, builder)

    @staticmethod
    def _normalize(report_type: str) -> str:
        return str(report_type).lower()

    def register(self, report_type: str, builder: ReportBuilder) -> None:
        if not callable(builder):
            raise TypeError(f"Builder for '{report_type}' must be callable.")
        self._builders[self._normalize(report_type)] = builder

    def resolve(self, report_type: str) -> ReportBuilder | None:
        return self._builders.get(self._normalize(report_type))

    def supported_types(self) -> tuple[str, ...]:
        return tuple(self._builders)


def build_default_report_registry(radius_parser: RadiusParser | None = None) -> ReportRegistry:
    """Registry with the four built-in report kinds."""
    parser = radius_parser or RadiusParser()
    return ReportRegistry(
        builders={
            "first_layer": lambda cfg, spectra: build_first_layer_table(cfg, spectra, parser),
            "depth_profile": build_depth_profile_table,
            "thickness_until_fraction": build_thickness_until_fraction_table,
            "fraction_at_thickness": build_fraction_at_thickness_table,
        }
    )
