"""Build report tables from persisted spectra."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from ..config.models import (
    DepthProfileReportConfig,
    FirstLayerReportConfig,
    FractionAtThicknessReportConfig,
    ThicknessUntilFractionReportConfig,
)
from ..elements import display_element_name
from ..errors import ReportError
from ..storage.models import Layer, SpectrumExport
from ..storage.repository import normalize_fs_path
from .metrics import cumulative_thickness, prevalence_fraction_at_thickness, thickness_until_prevalence_fraction
from .radius import RadiusParser
from .table import ReportTable

AREAL_DENSITY = "10^15 atoms/cm²"
PERCENT = 100.0


def _spectrum(spectra: Mapping[str, SpectrumExport], path: str | Path) -> SpectrumExport:
    key = normalize_fs_path(path)
    spectrum = spectra.get(key)
    if spectrum is None:
        raise ReportError(f"No exported spectrum recorded for {key}")
    return spectrum


def _sorted_layers(spectrum: SpectrumExport) -> list[Layer]:
    return sorted(spectrum.layers, key=lambda layer: layer.index)


def _labelled(labels: list[str], files: list[Path]) -> list[tuple[str, Path]]:
    if len(labels) != len(files):
        raise ReportError(f"{len(labels)} labels given for {len(files)} files.")
    return list(zip(labels, files))


def build_first_layer_table(
    cfg: FirstLayerReportConfig,
    spectra: Mapping[str, SpectrumExport],
    radius_parser: RadiusParser,
) -> ReportTable:
    """Layer-1 composition (percent) and thickness per spectrum, keyed by radius."""
    names = [display_element_name(el) for el in cfg.elements]
    table = ReportTable(
        name=cfg.name,
        units=["mm", *["%"] * len(names), AREAL_DENSITY],
        columns=["r", *[f"c_{n}" for n in names], "thickness"],
    )
    for path in cfg.files:
        spectrum = _spectrum(spectra, path)
        layer = spectrum.layer(1)
        if layer is None:
            raise ReportError(f"{spectrum.fs_path} has no layer 1")
        table.add_row(
            radius_parser.parse(path),
            *[layer.concentration(el) * PERCENT for el in cfg.elements],
            layer.thickness,
        )
    return table


def build_depth_profile_table(cfg: DepthProfileReportConfig, spectra: Mapping[str, SpectrumExport]) -> ReportTable:
    """Per-layer thickness, depth, roughness and concentration of one spectrum."""
    spectrum = _spectrum(spectra, cfg.file)
    layers = _sorted_layers(spectrum)
    if cfg.ignore_last and layers:
        layers = layers[:-1]
    ignored = set(cfg.ignore_indices)
    layers = [layer for layer in layers if layer.index not in ignored]

    indices = [layer.index for layer in layers]
    thicknesses = [layer.thickness for layer in layers]
    roughness = [layer.roughness_fwhm for layer in layers]
    concentrations = [layer.concentration(cfg.element) * PERCENT for layer in layers]
    if cfg.insert_zero_layer:
        indices.insert(0, 0)
        thicknesses.insert(0, 0.0)
        roughness.insert(0, 0.0)
        concentrations.insert(0, 0.0)

    element = display_element_name(cfg.element)
    table = ReportTable(
        name=cfg.name,
        units=["", AREAL_DENSITY, AREAL_DENSITY, AREAL_DENSITY, "%"],
        columns=["index", "thickness", "depth", "roughness_fwhm", f"c_{element}"],
    )
    depth = cumulative_thickness(thicknesses)
    for row in zip(indices, thicknesses, depth, roughness, concentrations):
        table.add_row(row[0], row[1], float(row[2]), row[3], row[4])
    return table


def build_thickness_until_fraction_table(
    cfg: ThicknessUntilFractionReportConfig, spectra: Mapping[str, SpectrumExport]
) -> ReportTable:
    """Depth at which each spectrum reaches the configured prevalence fraction."""
    element = display_element_name(cfg.element)
    table = ReportTable(
        name=cfg.name,
        units=["", AREAL_DENSITY],
        columns=["label", f"depth_{element}_{cfg.threshold_fraction * PERCENT:g}%"],
    )
    for label, path in _labelled(cfg.labels, cfg.files):
        layers = _sorted_layers(_spectrum(spectra, path))
        table.add_row(label, thickness_until_prevalence_fraction(layers, cfg.element, cfg.threshold_fraction))
    return table


def build_fraction_at_thickness_table(
    cfg: FractionAtThicknessReportConfig, spectra: Mapping[str, SpectrumExport]
) -> ReportTable:
    """Prevalence fraction each spectrum accumulates above the configured thickness."""
    element = display_element_name(cfg.element)
    table = ReportTable(
        name=cfg.name,
        units=["", "1"],
        columns=["label", f"fraction_{element}_{cfg.threshold_thickness:g}"],
    )
    for label, path in _labelled(cfg.labels, cfg.files):
        layers = _sorted_layers(_spectrum(spectra, path))
        table.add_row(label, prevalence_fraction_at_thickness(layers, cfg.element, cfg.threshold_thickness))
    return table
