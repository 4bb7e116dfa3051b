"""Narrow interface over the SIMNRA automation objects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from pathlib import Path
from typing import Sequence


class SpectrumFormat(IntEnum):
    """File formats accepted by ``read_spectrum_data``."""

    ASCII_CHANNELS_VS_COUNTS = 1
    CANBERRA_CAM = 2
    RUMP_RBS = 4
    USER_DEFINED = 5
    MCERD = 6
    ASCII_WITHOUT_CHANNELS = 7
    ASCII_ENERGIES_VS_COUNTS = 8
    XNRA_OR_IDF = 9
    CANBERRA_AVA = 10
    FAST_COMTEC_MPA = 11
    IAEA_SPE = 13


class TargetId(IntEnum):
    """Which layer stack a stopping lookup refers to."""

    TARGET = 1
    FOIL = 2
    WINDOW = 3


class InstrumentProxy(ABC):
    """One exclusive session of the analysis application.

    Layer and element indices are 1-based, matching the automation interface.
    Implementations raise :class:`~nraexport.errors.ProxyFailureError` for
    failed calls rather than returning falsy sentinels.
    """

    name: str = "None"

    @abstractmethod
    def open(self, path: str | Path) -> bool: ...

    @abstractmethod
    def write_spectrum_data(self, out_path: str | Path) -> None: ...

    @abstractmethod
    def number_of_layers(self) -> int: ...

    @abstractmethod
    def layer_thickness(self, layer_index: int) -> float: ...

    @abstractmethod
    def has_layer_roughness(self, layer_index: int) -> bool: ...

    @abstractmethod
    def layer_roughness(self, layer_index: int) -> float: ...

    @abstractmethod
    def number_of_elements(self, layer_index: int) -> int: ...

    @abstractmethod
    def element_name(self, layer_index: int, element_index: int) -> str: ...

    @abstractmethod
    def element_concentration_array(self, layer_index: int) -> Sequence[float]: ...

    @abstractmethod
    def element_concentration(self, layer_index: int, element: str | int) -> float: ...

    @abstractmethod
    def stopping_in_layer(
        self,
        z1: float,
        m1: float,
        energy: float,
        target_id: TargetId,
        layer_index: int,
    ) -> float: ...

    @abstractmethod
    def incident_energy(self) -> float: ...

    @abstractmethod
    def projectile_charge(self) -> float: ...

    @abstractmethod
    def projectile_mass(self) -> float: ...

    @abstractmethod
    def close(self) -> None: ...

    def save_as(self, path: str | Path, file_type: int = 2) -> bool:
        raise NotImplementedError

    def save_target_as(self, path: str | Path) -> bool:
        raise NotImplementedError

    def read_spectrum_data(
        self, path: str | Path, spectrum_format: SpectrumFormat = SpectrumFormat.ASCII_CHANNELS_VS_COUNTS
    ) -> bool:
        raise NotImplementedError
