"""Numeric routines over layer stacks."""

from .depth import DepthCalculator, StoppingPolicy

__all__ = ["DepthCalculator", "StoppingPolicy"]
