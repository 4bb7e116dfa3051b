"""Service-layer entry points for nraexport."""

from .export_service import DepthSummary, ExportService
from .instances import ADMIN_GROUP, InstanceRegistry, UserSession
from .report_service import ReportRun, ReportService
from .watcher import ADD_EVENT, CHANGE_EVENT, PollingWatcher

__all__ = [
    "ADD_EVENT",
    "ADMIN_GROUP",
    "CHANGE_EVENT",
    "DepthSummary",
    "ExportService",
    "InstanceRegistry",
    "PollingWatcher",
    "ReportRun",
    "ReportService",
    "UserSession",
]
