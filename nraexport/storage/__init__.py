"""Relational store for exported spectra."""

from .models import Base, Layer, LayerPart, SpectrumExport, datetime_from_millis, millis_from_datetime
from .repository import SpectrumExportRepository, normalize_fs_path
from .session import build_engine, build_session_factory, session_scope

__all__ = [
    "Base",
    "Layer",
    "LayerPart",
    "SpectrumExport",
    "SpectrumExportRepository",
    "build_engine",
    "build_session_factory",
    "datetime_from_millis",
    "millis_from_datetime",
    "normalize_fs_path",
    "session_scope",
]
