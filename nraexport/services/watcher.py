"""Polling file-system watcher for result files."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable

from ..sync.scanner import DEFAULT_EXTENSIONS, file_mtime_ms, find_result_files

logger = logging.getLogger(__name__)

ADD_EVENT = "add"
CHANGE_EVENT = "change"

WatchEvent = tuple[str, Path]
WatchCallback = Callable[[list[WatchEvent]], None]


class PollingWatcher:
    """Report added and modified result files under a root by polling mtimes.

    Each poll hands all of its events to the callback in one call.
    """

    def __init__(
        self,
        root: str | Path,
        callback: WatchCallback,
        *,
        recursive: bool = True,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        interval_s: float = 2.0,
    ) -> None:
        self.root = Path(root)
        self.callback = callback
        self.recursive = recursive
        self.extensions = tuple(extensions)
        self.interval_s = float(interval_s)
        self._snapshot: dict[Path, int] = {}
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _scan(self) -> dict[Path, int]:
        snapshot: dict[Path, int] = {}
        for path in find_result_files(self.root, recursive=self.recursive, extensions=self.extensions):
            try:
                snapshot[path] = file_mtime_ms(path)
            except OSError:
                # Removed between listing and stat.
                continue
        return snapshot

    def prime(self) -> None:
        """Record the current state so that only later changes are reported."""
        self._snapshot = self._scan()

    def poll_once(self) -> list[WatchEvent]:
        """Diff against the previous scan and dispatch the events as one batch."""
        current = self._scan()
        events: list[WatchEvent] = []
        for path, mtime in current.items():
            previous = self._snapshot.get(path)
            if previous is None:
                events.append((ADD_EVENT, path))
            elif mtime != previous:
                events.append((CHANGE_EVENT, path))
        self._snapshot = current
        if events:
            self.callback(events)
        return events

    def run(self) -> None:
        """Poll in the calling thread until :meth:`stop` is called."""
        self.prime()
        logger.info("Watching %s every %.3g s", self.root, self.interval_s)
        while not self._stop.wait(self.interval_s):
            try:
                self.poll_once()
            except OSError as exc:
                logger.warning("Polling %s failed: %s", self.root, exc)

    def start(self) -> None:
        """Poll in a background thread.

        Callbacks then run on that thread; proxies bound to a COM apartment
        must be created there as well.
        """
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="nraexport-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
