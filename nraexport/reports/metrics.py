"""Prevalence metrics over persisted layer stacks.

Prevalence is concentration * thickness; layer sequences are expected in
ascending index order (shallowest first).
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..storage.models import Layer


def _arrays(layers: Sequence[Layer], element_name: str) -> tuple[np.ndarray, np.ndarray]:
    thickness = np.asarray([layer.thickness for layer in layers], dtype=float)
    concentration = np.asarray([layer.concentration(element_name) for layer in layers], dtype=float)
    return thickness, concentration


def cumulative_thickness(thicknesses: Sequence[float]) -> np.ndarray:
    """Running sum of thickness, i.e. the depth at the bottom of each layer."""
    return np.cumsum(np.asarray(thicknesses, dtype=float))


def total_prevalence(layers: Sequence[Layer], element_name: str) -> float:
    thickness, concentration = _arrays(layers, element_name)
    return float(np.sum(thickness * concentration))


def thickness_until_prevalence_fraction(layers: Sequence[Layer], element_name: str, threshold_fraction: float) -> float:
    """Depth at which the cumulative prevalence reaches ``threshold_fraction`` of the total.

    The crossing layer is interpolated linearly with its own concentration.
    Returns 0.0 when the element is absent from the stack.
    """
    thickness, concentration = _arrays(layers, element_name)
    total = float(np.sum(thickness * concentration))
    if total <= 0.0:
        return 0.0

    accumulated = 0.0
    depth = 0.0
    for t, c in zip(thickness, concentration):
        fraction = t * c / total
        if accumulated + fraction > threshold_fraction:
            return depth + (threshold_fraction - accumulated) * total / c
        accumulated += fraction
        depth += t
    return depth


def prevalence_fraction_at_thickness(layers: Sequence[Layer], element_name: str, threshold_thickness: float) -> float:
    """Fraction of the total prevalence found above ``threshold_thickness``."""
    thickness, concentration = _arrays(layers, element_name)
    total = float(np.sum(thickness * concentration))
    if total <= 0.0:
        return 0.0

    depth = 0.0
    prevalence = 0.0
    for t, c in zip(thickness, concentration):
        if depth + t > threshold_thickness:
            prevalence += c * (threshold_thickness - depth)
            break
        prevalence += c * t
        depth += t
    return prevalence / total
