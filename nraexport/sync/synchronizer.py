"""Mirror SIMNRA result files into the export store."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..config.models import SyncConfig
from ..elements import normalize_element_name
from ..errors import FileOpenError, ProxyFailureError
from ..physics.depth import DepthCalculator
from ..proxy.base import InstrumentProxy
from ..storage.models import Layer, SpectrumExport
from ..storage.repository import SpectrumExportRepository, normalize_fs_path
from ..storage.session import session_scope
from .scanner import DEFAULT_EXTENSIONS, companion_data_path, file_mtime_ms, find_result_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingExport:
    """A result file that is new or newer than its stored ``changed_at``."""

    path: Path
    changed_at_ms: int
    is_new: bool


@dataclass
class SyncReport:
    """Outcome of one synchronization pass."""

    scanned: int = 0
    pending: list[PendingExport] = field(default_factory=list)
    exported: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.pending)


def _stat(path: Path) -> tuple[Path, int | None, OSError | None]:
    try:
        return path, file_mtime_ms(path), None
    except OSError as exc:
        return path, None, exc


class ExportSynchronizer:
    """Drive one proxy session over every changed result file under a root.

    Files are opened one after another because the proxy is a single
    stateful session; only file metadata is gathered concurrently. A file the
    proxy refuses to open, or that fails on disk or in the store, is recorded
    in ``SyncReport.failed``; any other proxy error aborts the pass.
    """

    def __init__(
        self,
        proxy: InstrumentProxy,
        session_factory: sessionmaker[Session],
        *,
        config: SyncConfig | None = None,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        calculator: DepthCalculator | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.proxy = proxy
        self.session_factory = session_factory
        self.config = config or SyncConfig()
        self.extensions = tuple(extensions)
        self.calculator = calculator or DepthCalculator(proxy)
        self._sleep = sleep

    def sync(self, root: str | Path, recursive: bool = True) -> bool:
        """Run one pass; True iff at least one file was new or changed."""
        return self.run(root, recursive).changed

    def run(self, root: str | Path, recursive: bool = True) -> SyncReport:
        report = SyncReport()
        files = find_result_files(root, recursive=recursive, extensions=self.extensions)
        report.scanned = len(files)
        report.pending = self.plan(files, report)

        logger.info("Exporting <%d> of <%d> files", len(report.pending), report.scanned)
        for position, pending in enumerate(report.pending):
            if position:
                self._sleep(self.config.settle_delay_s)
            try:
                self.export_file(pending)
            except (FileOpenError, OSError, SQLAlchemyError) as exc:
                logger.error("Export of %s failed: %s", pending.path, exc)
                report.failed.append(pending.path)
                continue
            report.exported.append(pending.path)
        return report

    def plan(self, files: list[Path], report: SyncReport | None = None) -> list[PendingExport]:
        """Compare file mtimes with stored timestamps without writing anything."""
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            stats = list(pool.map(_stat, files))

        pending: list[PendingExport] = []
        session = self.session_factory()
        try:
            repo = SpectrumExportRepository(session)
            for path, mtime_ms, error in stats:
                if error is not None or mtime_ms is None:
                    logger.warning("Could not stat %s: %s", path, error)
                    if report is not None:
                        report.failed.append(path)
                    continue
                try:
                    spectrum = repo.find_by_path(path)
                except SQLAlchemyError as exc:
                    logger.warning("Lookup of %s failed: %s", path, exc)
                    if report is not None:
                        report.failed.append(path)
                    continue
                if spectrum is None:
                    pending.append(PendingExport(path=path, changed_at_ms=mtime_ms, is_new=True))
                elif mtime_ms > spectrum.changed_at_ms:
                    pending.append(PendingExport(path=path, changed_at_ms=mtime_ms, is_new=False))
        finally:
            session.rollback()
            session.close()
        return pending

    def export_file(self, pending: PendingExport) -> SpectrumExport:
        """Re-read one file through the proxy and commit its rows and timestamp together."""
        with session_scope(self.session_factory) as session:
            repo = SpectrumExportRepository(session)
            spectrum = repo.find_by_path(pending.path)
            if spectrum is None:
                spectrum = repo.create(pending.path, pending.changed_at_ms)
            else:
                repo.touch(spectrum, pending.changed_at_ms)
            self._export_layers(repo, spectrum, pending.path)
        return spectrum

    def _export_layers(self, repo: SpectrumExportRepository, spectrum: SpectrumExport, path: Path) -> None:
        dat_path = companion_data_path(path, self.config.dat_dirname, self.config.dat_extension)
        dat_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.proxy.open(normalize_fs_path(path)):
            raise FileOpenError(f"{self.proxy.name} could not open {path}")
        self.calculator.clear_cache()
        self.proxy.write_spectrum_data(dat_path)

        n_layers = int(self.proxy.number_of_layers())
        logger.info("Logging <%d> layers of spectrum <%s>", n_layers, path)
        for layer_index in range(1, n_layers + 1):
            self._export_layer(repo, spectrum, layer_index)

        removed = repo.prune_layers(spectrum, n_layers)
        if removed:
            logger.debug("Removed %d stale layers of %s", removed, path)

        if self.config.compute_max_depth:
            spectrum.max_depth = self.calculator.get_maximum_depth()

    def _export_layer(self, repo: SpectrumExportRepository, spectrum: SpectrumExport, layer_index: int) -> Layer:
        has_roughness = self.proxy.has_layer_roughness(layer_index)
        thickness = self.proxy.layer_thickness(layer_index)
        roughness = self.proxy.layer_roughness(layer_index) if has_roughness else 0.0
        layer = repo.upsert_layer(spectrum, layer_index, thickness, roughness)

        n_elements = int(self.proxy.number_of_elements(layer_index))
        concentrations = list(self.proxy.element_concentration_array(layer_index))
        if len(concentrations) < n_elements:
            raise ProxyFailureError(
                f"Layer {layer_index} reports {n_elements} elements but {len(concentrations)} concentrations."
            )

        seen: list[str] = []
        for element_index in range(1, n_elements + 1):
            name = normalize_element_name(self.proxy.element_name(layer_index, element_index))
            repo.upsert_part(layer, name, concentrations[element_index - 1])
            seen.append(name)
        repo.prune_parts(layer, seen)
        return layer
