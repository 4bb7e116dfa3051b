"""pywin32 binding of the SIMNRA OLE automation server."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

from ..errors import FileOpenError, ProxyFailureError
from .base import InstrumentProxy, SpectrumFormat, TargetId

logger = logging.getLogger(__name__)

APP_PROG_ID = "Simnra.App"
TARGET_PROG_ID = "Simnra.Target"
SETUP_PROG_ID = "Simnra.Setup"
PROJECTILE_PROG_ID = "Simnra.Projectile"


def _dispatch(prog_id: str) -> Any:
    # pywin32 only exists on Windows hosts; importing here keeps the rest of
    # the package importable elsewhere.
    import win32com.client

    logger.debug("Dispatching %s", prog_id)
    return win32com.client.Dispatch(prog_id)


def _scalar(value: Any) -> Any:
    # COM methods with out-params come back as tuples; the result is last.
    if isinstance(value, (tuple, list)):
        return value[-1]
    return value


class SimnraComProxy(InstrumentProxy):
    """Controller for one SIMNRA session via its App/Target/Setup/Projectile objects."""

    def __init__(self, name: str, *, dispatch=_dispatch) -> None:
        self.name = name
        self.path: Path | None = None
        try:
            self._app = dispatch(APP_PROG_ID)
            self._target = dispatch(TARGET_PROG_ID)
            self._setup = dispatch(SETUP_PROG_ID)
            self._projectile = dispatch(PROJECTILE_PROG_ID)
        except Exception as exc:
            raise ProxyFailureError(f"Could not start SIMNRA instance <{name}>: {exc}") from exc
        self._closed = False
        logger.info("SIMNRA instance <%s> started", name)

    def _check_open(self) -> None:
        if self._closed:
            raise ProxyFailureError(f"SIMNRA instance <{self.name}> is closed.")

    def _call(self, obj: str, method: str, *args: Any) -> Any:
        self._check_open()
        what = f"{obj}.{method}"
        try:
            func = getattr(getattr(self, f"_{obj.lower()}"), method)
            return _scalar(func(*args))
        except Exception as exc:
            raise ProxyFailureError(f"{what}{args!r} failed on <{self.name}>: {exc}") from exc

    def _get(self, obj: str, prop: str) -> Any:
        self._check_open()
        try:
            return getattr(getattr(self, f"_{obj.lower()}"), prop)
        except Exception as exc:
            raise ProxyFailureError(f"Reading {obj}.{prop} failed on <{self.name}>: {exc}") from exc

    def open(self, path: str | Path) -> bool:
        self.path = Path(path)
        if not self._call("App", "Open", str(path), True):
            raise FileOpenError(f"SIMNRA could not open {path}")
        return True

    def save_as(self, path: str | Path | None = None, file_type: int = 2) -> bool:
        target = path if path is not None else self.path
        if target is None:
            raise ProxyFailureError("save_as needs a path when no file is open.")
        return bool(self._call("App", "SaveAs", str(target), file_type))

    def save_target_as(self, path: str | Path) -> bool:
        return bool(self._call("Target", "SaveTargetAs", str(path)))

    def read_spectrum_data(
        self, path: str | Path, spectrum_format: SpectrumFormat = SpectrumFormat.ASCII_CHANNELS_VS_COUNTS
    ) -> bool:
        return bool(self._call("Target", "ReadSpectrumData", str(path), int(spectrum_format)))

    def write_spectrum_data(self, out_path: str | Path) -> None:
        result = self._call("App", "WriteSpectrumData", str(out_path))
        if result is not None and not result:
            raise ProxyFailureError(f"SIMNRA could not write spectrum data to {out_path}")

    def number_of_layers(self) -> int:
        return int(self._get("Target", "NumberOfLayers"))

    def layer_thickness(self, layer_index: int) -> float:
        return float(self._call("Target", "LayerThickness", layer_index))

    def has_layer_roughness(self, layer_index: int) -> bool:
        return bool(self._call("Target", "HasLayerRoughness", layer_index))

    def layer_roughness(self, layer_index: int) -> float:
        return float(self._call("Target", "LayerRoughness", layer_index))

    def number_of_elements(self, layer_index: int) -> int:
        return int(self._call("Target", "NumberOfElements", layer_index))

    def element_name(self, layer_index: int, element_index: int) -> str:
        return str(self._call("Target", "ElementName", layer_index, element_index))

    def element_concentration_array(self, layer_index: int) -> Sequence[float]:
        self._check_open()
        try:
            # Returned whole; _scalar would keep only the last entry.
            values = self._target.ElementConcentrationArray(layer_index)
        except Exception as exc:
            raise ProxyFailureError(f"Target.ElementConcentrationArray({layer_index}) failed: {exc}") from exc
        return [float(v) for v in values]

    def element_concentration(self, layer_index: int, element: str | int) -> float:
        return float(self._call("Target", "ElementConcentration", layer_index, element))

    def stopping_in_layer(
        self,
        z1: float,
        m1: float,
        energy: float,
        target_id: TargetId,
        layer_index: int,
    ) -> float:
        return float(self._call("Target", "StoppingInLayer", z1, m1, energy, int(target_id), layer_index))

    def incident_energy(self) -> float:
        return float(self._get("Setup", "Energy"))

    def projectile_charge(self) -> float:
        return float(self._get("Projectile", "Charge"))

    def projectile_mass(self) -> float:
        return float(self._get("Projectile", "Mass"))

    def close(self) -> None:
        if self._closed:
            return
        # Leave the window to the user instead of quitting their session.
        try:
            self._app.Show()
        finally:
            self._app = self._target = self._setup = self._projectile = None
            self._closed = True
            logger.info("SIMNRA instance <%s> released", self.name)
