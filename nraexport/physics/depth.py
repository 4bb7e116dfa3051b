"""Maximum analyzable depth and prevalence integration over a layer stack.

Thicknesses are areal densities in 1e15 atoms/cm^2, stopping powers are in
keV per 1e15 atoms/cm^2 and energies are in keV.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..elements import normalize_element_name
from ..errors import DepthExhaustionError
from ..proxy.base import InstrumentProxy, TargetId

logger = logging.getLogger(__name__)


class StoppingPolicy(str, Enum):
    """Energy at which layer stopping powers are evaluated."""

    INITIAL = "initial"
    REMAINING = "remaining"


class DepthCalculator:
    """Depth/prevalence routines bound to one open proxy session.

    The maximum depth is cached until :meth:`clear_cache` is called, which the
    synchronizer does whenever another file is opened.
    """

    def __init__(
        self,
        proxy: InstrumentProxy,
        *,
        policy: StoppingPolicy = StoppingPolicy.REMAINING,
        target_id: TargetId = TargetId.TARGET,
    ) -> None:
        self.proxy = proxy
        self.policy = StoppingPolicy(policy)
        self.target_id = target_id
        self._max_depth: float | None = None

    def clear_cache(self) -> None:
        self._max_depth = None

    def _stopping(self, layer_index: int, initial_energy: float, remaining_energy: float) -> float:
        energy = initial_energy if self.policy is StoppingPolicy.INITIAL else remaining_energy
        return self.proxy.stopping_in_layer(
            self.proxy.projectile_charge(),
            self.proxy.projectile_mass(),
            energy,
            self.target_id,
            layer_index,
        )

    def get_maximum_depth(self) -> float:
        """Depth at which the incident ion has lost all of its energy."""
        if self._max_depth is not None:
            return self._max_depth

        n_layers = self.proxy.number_of_layers()
        initial = float(self.proxy.incident_energy())
        remaining = initial
        max_depth = 0.0

        for layer_index in range(1, n_layers + 1):
            thickness = self.proxy.layer_thickness(layer_index)
            stopping = self._stopping(layer_index, initial, remaining)
            loss = thickness * stopping
            if remaining - loss >= 0.0:
                max_depth += thickness
                remaining -= loss
                continue
            # Stopped inside this layer.
            max_depth += remaining / stopping
            self._max_depth = max_depth
            logger.debug("Ion stopped in layer %d at depth %.6g", layer_index, max_depth)
            return max_depth

        raise DepthExhaustionError(
            f"{remaining:.6g} keV left after all {n_layers} layers; "
            "the layer stack is too thin to stop the incident ion."
        )

    def element_concentration(self, layer_index: int, element_name: str) -> float:
        """Concentration of ``element_name`` in a layer, 0.0 when absent."""
        wanted = normalize_element_name(element_name)
        for element_index in range(1, self.proxy.number_of_elements(layer_index) + 1):
            name = self.proxy.element_name(layer_index, element_index)
            if normalize_element_name(name) == wanted:
                return float(self.proxy.element_concentration(layer_index, element_index))
        return 0.0

    def integrate_element_until_maximum_bulk(self, element_name: str) -> float:
        """Integrate concentration * thickness of an element down to the maximum depth."""
        remaining_depth = self.get_maximum_depth()
        n_layers = self.proxy.number_of_layers()
        integrated = 0.0

        for layer_index in range(1, n_layers + 1):
            thickness = self.proxy.layer_thickness(layer_index)
            concentration = self.element_concentration(layer_index, element_name)
            if remaining_depth - thickness >= 0.0:
                integrated += thickness * concentration
                remaining_depth -= thickness
                continue
            return integrated + concentration * remaining_depth

        if remaining_depth > 0.0:
            raise DepthExhaustionError(
                f"Maximum depth exceeds the layer stack by {remaining_depth:.6g} x 1e15 atoms/cm^2."
            )
        return integrated
