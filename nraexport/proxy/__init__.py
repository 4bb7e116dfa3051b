"""Instrument proxy interface and bindings."""

from .base import InstrumentProxy, SpectrumFormat, TargetId
from .com import SimnraComProxy

__all__ = ["InstrumentProxy", "SimnraComProxy", "SpectrumFormat", "TargetId"]
