"""Result-file synchronization and re-export coordination."""

from .debounce import FORCE_EVENT, ReexportDebouncer
from .scanner import companion_data_path, file_mtime_ms, find_result_files
from .synchronizer import ExportSynchronizer, PendingExport, SyncReport

__all__ = [
    "ExportSynchronizer",
    "FORCE_EVENT",
    "PendingExport",
    "ReexportDebouncer",
    "SyncReport",
    "companion_data_path",
    "file_mtime_ms",
    "find_result_files",
]
