"""Wire the synchronizer, debouncer, reports and watcher from an AppConfig."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..config.models import AppConfig
from ..errors import FileOpenError, NraExportError
from ..physics.depth import DepthCalculator, StoppingPolicy
from ..reports.radius import RadiusParser
from ..reports.registry import build_default_report_registry
from ..storage.repository import normalize_fs_path
from ..storage.session import build_session_factory
from ..sync.debounce import FORCE_EVENT, ReexportDebouncer
from ..sync.synchronizer import ExportSynchronizer, SyncReport
from .instances import InstanceRegistry
from .report_service import ReportRun, ReportService
from .watcher import PollingWatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepthSummary:
    """Maximum depth of one result file and element prevalence integrated down to it."""

    path: Path
    max_depth: float
    integrals: dict[str, float]


class ExportService:
    """Owns the proxy sessions, the store and the re-export loop for one config."""

    def __init__(
        self,
        config: AppConfig,
        *,
        instances: InstanceRegistry | None = None,
        session_factory: sessionmaker[Session] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.instances = instances or InstanceRegistry()
        self.session_factory = session_factory or build_session_factory(config.database.url)
        parser = RadiusParser(markers=config.radius.markers, terminators=config.radius.terminators)
        self.reports = ReportService(self.session_factory, build_default_report_registry(parser))
        self.debouncer = ReexportDebouncer(self._sync_pass, self._render_after_sync)
        self.watcher: PollingWatcher | None = None
        self._sleep = sleep
        self._synchronizer: ExportSynchronizer | None = None

    def synchronizer(self) -> ExportSynchronizer:
        """Synchronizer bound to the configured instance, started on first use."""
        proxy = self.instances.acquire(self.config.sync.instance_name)
        if self._synchronizer is None or self._synchronizer.proxy is not proxy:
            calculator = DepthCalculator(proxy, policy=StoppingPolicy(self.config.depth.stopping_policy))
            self._synchronizer = ExportSynchronizer(
                proxy,
                self.session_factory,
                config=self.config.sync,
                extensions=self.config.watch.extensions,
                calculator=calculator,
                sleep=self._sleep,
            )
        return self._synchronizer

    def _sync_pass(self) -> bool:
        return self.synchronizer().sync(self.config.watch.root, self.config.watch.recursive)

    def _render_after_sync(self) -> None:
        self.render_reports()

    def render_reports(self) -> ReportRun:
        run = self.reports.run(self.config.reports)
        if run.failed:
            logger.warning("%d report(s) failed: %s", len(run.failed), ", ".join(run.failed))
        return run

    def sync_once(self, *, render_reports: bool = True) -> SyncReport:
        """One pass outside the debouncer; errors propagate to the caller."""
        report = self.synchronizer().run(self.config.watch.root, self.config.watch.recursive)
        if render_reports:
            self.render_reports()
        return report

    def handle_event(self, event: str, path: Path | None = None) -> bool:
        """Watcher/startup entry point; failures are logged and the pass abandoned."""
        if path is not None:
            logger.info("%s: %s", event, path)
        try:
            return self.debouncer.trigger(event, force=event == FORCE_EVENT)
        except (NraExportError, OSError, SQLAlchemyError) as exc:
            logger.error("Re-export after <%s> abandoned: %s", event, exc)
            return False

    def handle_events(self, events: list[tuple[str, Path]]) -> bool:
        """Watcher entry point: one re-export for every event of a poll."""
        for event, path in events:
            logger.info("%s: %s", event, path)
        if not events:
            return False
        return self.handle_event(events[0][0])

    def start(self) -> None:
        """Run the startup pass and prepare the watcher."""
        watch = self.config.watch
        if watch.on_start:
            self.handle_event(FORCE_EVENT)
        if watch.on_update:
            self.watcher = PollingWatcher(
                watch.root,
                self.handle_events,
                recursive=watch.recursive,
                extensions=watch.extensions,
                interval_s=watch.poll_interval_s,
            )

    def watch(self) -> None:
        """Start, then poll in the calling thread until stopped."""
        self.start()
        if self.watcher is not None:
            self.watcher.run()

    def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        self.instances.close_all()

    def depth_summary(self, path: str | Path, elements: Iterable[str]) -> DepthSummary:
        """Open one result file and integrate the given elements down to the maximum depth."""
        synchronizer = self.synchronizer()
        target = normalize_fs_path(path)
        if not synchronizer.proxy.open(target):
            raise FileOpenError(f"{synchronizer.proxy.name} could not open {target}")
        calculator = synchronizer.calculator
        calculator.clear_cache()
        max_depth = calculator.get_maximum_depth()
        integrals = {el: calculator.integrate_element_until_maximum_bulk(el) for el in elements}
        return DepthSummary(path=Path(target), max_depth=max_depth, integrals=integrals)
