"""ORM models for exported spectra and their layer composition."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from ..elements import SYMBOL_WIDTH, normalize_element_name

_EPOCH = datetime(1970, 1, 1)
_MS = timedelta(milliseconds=1)


def datetime_from_millis(millis: int) -> datetime:
    """Naive UTC datetime for an integer epoch-millisecond timestamp."""
    return _EPOCH + timedelta(milliseconds=int(millis))


def millis_from_datetime(value: datetime) -> int:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return (value - _EPOCH) // _MS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class SpectrumExport(Base):
    """One row per result file; ``changed_at`` mirrors the file's mtime."""

    __tablename__ = "spectrum_export"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fs_path: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    changed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    max_depth: Mapped[float | None] = mapped_column(Float, nullable=True)

    layers: Mapped[list["Layer"]] = relationship(
        cascade="all, delete-orphan",
        order_by="Layer.index",
    )

    @property
    def changed_at_ms(self) -> int:
        return millis_from_datetime(self.changed_at)

    def layer(self, index: int) -> "Layer | None":
        for layer in self.layers:
            if layer.index == index:
                return layer
        return None

    def __repr__(self) -> str:
        return f"SpectrumExport(id={self.id!r}, fs_path={self.fs_path!r})"


class Layer(Base):
    """A layer of the fitted target, ``index`` starting at 1 (shallowest)."""

    __tablename__ = "simnra_layer"
    __table_args__ = (UniqueConstraint("spectrum_id", "index", name="uq_simnra_layer_spectrum_index"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    spectrum_id: Mapped[int] = mapped_column(
        ForeignKey("spectrum_export.id", ondelete="CASCADE", onupdate="CASCADE"),
        index=True,
    )
    index: Mapped[int] = mapped_column(Integer, nullable=False)
    thickness: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    roughness_fwhm: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    parts: Mapped[list["LayerPart"]] = relationship(
        cascade="all, delete-orphan",
        order_by="LayerPart.element_name",
    )

    def concentration(self, element_name: str) -> float:
        """Concentration of an element in this layer, 0.0 when absent."""
        wanted = normalize_element_name(element_name)
        for part in self.parts:
            if part.element_name == wanted:
                return part.concentration
        return 0.0

    def __repr__(self) -> str:
        return f"Layer(spectrum_id={self.spectrum_id!r}, index={self.index!r}, thickness={self.thickness!r})"


class LayerPart(Base):
    """Concentration of one element within a layer."""

    __tablename__ = "simnra_layer_part"
    __table_args__ = (UniqueConstraint("layer_id", "element_name", name="uq_simnra_layer_part_element"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    layer_id: Mapped[int] = mapped_column(
        ForeignKey("simnra_layer.id", ondelete="CASCADE", onupdate="CASCADE"),
        index=True,
    )
    element_name: Mapped[str] = mapped_column(String(SYMBOL_WIDTH), nullable=False)
    concentration: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    @validates("element_name")
    def _normalize_element_name(self, key: str, value: str) -> str:
        return normalize_element_name(value)

    def __repr__(self) -> str:
        return f"LayerPart(layer_id={self.layer_id!r}, element_name={self.element_name!r})"
