"""Single-flight coordination of re-export passes."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

FORCE_EVENT = "FORCE"


class ReexportDebouncer:
    """Run at most one sync pass at a time and coalesce triggers that arrive mid-pass.

    Any number of triggers received while a pass runs collapse into a single
    catch-up pass. ``on_changed`` runs after the pass loop when a pass found a
    change or a forced trigger was involved.
    """

    def __init__(self, run_pass: Callable[[], bool], on_changed: Callable[[], None] | None = None) -> None:
        self._run_pass = run_pass
        self._on_changed = on_changed
        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self._pending_force = False
        self.passes = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending

    def trigger(self, event: str = "change", *, force: bool = False) -> bool:
        """Handle one notification; return False when it was coalesced into a running pass."""
        force = force or event == FORCE_EVENT
        with self._lock:
            if self._running:
                self._pending = True
                self._pending_force = self._pending_force or force
                logger.debug("Pass running, queued re-export for <%s>", event)
                return False
            self._running = True
            self._pending = False
            self._pending_force = False

        logger.info("Re-issuing export for <%s>", event)
        changed = False
        try:
            while True:
                changed = bool(self._run_pass()) or changed
                self.passes += 1
                with self._lock:
                    if not self._pending:
                        force = force or self._pending_force
                        self._pending_force = False
                        self._running = False
                        break
                    self._pending = False
                logger.info("Changes arrived during the pass, running again")
        except Exception:
            with self._lock:
                self._running = False
                self._pending = False
                self._pending_force = False
            raise

        if changed:
            logger.info("Re-export succeeded")
        else:
            logger.info("Nothing to re-export")
        if (changed or force) and self._on_changed is not None:
            self._on_changed()
        return True
