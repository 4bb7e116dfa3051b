"""Render configured reports from the export store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..config.models import DepthProfileReportConfig, ReportConfig
from ..errors import ReportError
from ..export import save_depth_profile_png, save_report_csv
from ..reports.registry import ReportRegistry, build_default_report_registry
from ..storage.repository import SpectrumExportRepository

logger = logging.getLogger(__name__)


@dataclass
class ReportRun:
    """Written artifacts and failed report names of one rendering pass."""

    written: list[Path] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _report_paths(cfg: ReportConfig) -> list[Path]:
    if isinstance(cfg, DepthProfileReportConfig):
        return [cfg.file]
    return list(cfg.files)


@dataclass
class ReportService:
    """Build each configured report and write it to its output directory."""

    session_factory: sessionmaker[Session]
    registry: ReportRegistry = field(default_factory=build_default_report_registry)

    def render(self, cfg: ReportConfig) -> list[Path]:
        builder = self.registry.resolve(cfg.type)
        if builder is None:
            supported = ", ".join(self.registry.supported_types())
            raise ReportError(f"Report type '{cfg.type}' is not supported. Use one of: {supported}.")

        with self.session_factory() as session:
            spectra = SpectrumExportRepository(session).load_spectra(_report_paths(cfg))
            table = builder(cfg, spectra)

        written = [save_report_csv(table, cfg.output)]
        if isinstance(cfg, DepthProfileReportConfig) and cfg.plot and table.rows:
            written.append(save_depth_profile_png(table, cfg.output))
        return written

    def run(self, configs: Iterable[ReportConfig]) -> ReportRun:
        """Render every report; a failing report is logged and skipped."""
        result = ReportRun()
        for cfg in configs:
            try:
                paths = self.render(cfg)
            except (ValueError, OSError, SQLAlchemyError) as exc:
                logger.error("Report '%s' failed: %s", cfg.name, exc)
                result.failed.append(cfg.name)
                continue
            for path in paths:
                logger.info("Wrote %s", path)
            result.written.extend(paths)
        return result
