"""Query and upsert helpers for the export store."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..elements import normalize_element_name
from .models import Layer, LayerPart, SpectrumExport, datetime_from_millis


def normalize_fs_path(path: str | Path) -> str:
    """Canonical key under which a result file is stored."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


class SpectrumExportRepository:
    """Data access for spectra, layers and layer parts within one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_path(self, path: str | Path) -> SpectrumExport | None:
        stmt = select(SpectrumExport).where(SpectrumExport.fs_path == normalize_fs_path(path))
        return self.session.scalars(stmt).one_or_none()

    def create(self, path: str | Path, changed_at_ms: int) -> SpectrumExport:
        spectrum = SpectrumExport(fs_path=normalize_fs_path(path), changed_at=datetime_from_millis(changed_at_ms))
        self.session.add(spectrum)
        self.session.flush()
        return spectrum

    def touch(self, spectrum: SpectrumExport, changed_at_ms: int) -> bool:
        """Advance ``changed_at``; never moves it backwards."""
        if changed_at_ms <= spectrum.changed_at_ms:
            return False
        spectrum.changed_at = datetime_from_millis(changed_at_ms)
        return True

    def upsert_layer(self, spectrum: SpectrumExport, index: int, thickness: float, roughness_fwhm: float) -> Layer:
        layer = spectrum.layer(index)
        if layer is None:
            layer = Layer(index=index)
            spectrum.layers.append(layer)
        layer.thickness = float(thickness)
        layer.roughness_fwhm = float(roughness_fwhm)
        self.session.flush()
        return layer

    def upsert_part(self, layer: Layer, element_name: str, concentration: float) -> LayerPart:
        name = normalize_element_name(element_name)
        for existing in layer.parts:
            if existing.element_name == name:
                existing.concentration = float(concentration)
                return existing
        part = LayerPart(element_name=name, concentration=float(concentration))
        layer.parts.append(part)
        return part

    def prune_parts(self, layer: Layer, keep_names: Iterable[str]) -> int:
        keep = {normalize_element_name(name) for name in keep_names}
        stale = [part for part in layer.parts if part.element_name not in keep]
        for part in stale:
            layer.parts.remove(part)
        return len(stale)

    def prune_layers(self, spectrum: SpectrumExport, n_layers: int) -> int:
        stale = [layer for layer in spectrum.layers if not 1 <= layer.index <= n_layers]
        for layer in stale:
            spectrum.layers.remove(layer)
        return len(stale)

    def load_spectra(self, paths: Iterable[str | Path]) -> dict[str, SpectrumExport]:
        """Load spectra with layers and parts eagerly joined, keyed by normalized path."""
        keys = [normalize_fs_path(p) for p in paths]
        if not keys:
            return {}
        stmt = (
            select(SpectrumExport)
            .where(SpectrumExport.fs_path.in_(keys))
            .options(selectinload(SpectrumExport.layers).selectinload(Layer.parts))
        )
        return {spectrum.fs_path: spectrum for spectrum in self.session.scalars(stmt)}
