"""Named proxy sessions and the access-controlled start/stop commands."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from ..errors import AccessDeniedError, DuplicateInstanceError, InstanceNotFoundError, InvalidInputError
from ..proxy.base import InstrumentProxy

logger = logging.getLogger(__name__)

ADMIN_GROUP = "groupAdministrators"

ProxyFactory = Callable[[str], InstrumentProxy]


@dataclass(frozen=True)
class UserSession:
    """Identity of a command caller."""

    user: str
    groups: frozenset[str] = field(default_factory=frozenset)

    def is_granted(self, group: str) -> bool:
        return group in self.groups


def _default_factory(name: str) -> InstrumentProxy:
    from ..proxy.com import SimnraComProxy

    return SimnraComProxy(name)


def _name_from(payload: Mapping[str, Any]) -> str:
    name = payload.get("name") if isinstance(payload, Mapping) else None
    if not isinstance(name, str) or not name:
        raise InvalidInputError("name must be a non-empty string.")
    return name


class InstanceRegistry:
    """Owns every live proxy session, keyed by instance name."""

    def __init__(self, factory: ProxyFactory | None = None) -> None:
        self._factory = factory or _default_factory
        self._instances: dict[str, InstrumentProxy] = {}
        self._lock = threading.Lock()

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._instances)

    def get(self, name: str) -> InstrumentProxy | None:
        with self._lock:
            return self._instances.get(name)

    def acquire(self, name: str) -> InstrumentProxy:
        """Return the named session, starting it when absent."""
        with self._lock:
            proxy = self._instances.get(name)
            if proxy is None:
                proxy = self._factory(name)
                self._instances[name] = proxy
                logger.info("Started instance <%s>", name)
            return proxy

    def start_instance(self, session: UserSession, payload: Mapping[str, Any]) -> bool:
        if not session.is_granted(ADMIN_GROUP):
            raise AccessDeniedError(f"{session.user} may not start instances.")
        name = _name_from(payload)
        with self._lock:
            if name in self._instances:
                raise DuplicateInstanceError(f"Instance <{name}> is already running.")
            self._instances[name] = self._factory(name)
        logger.info("Instance <%s> started by %s", name, session.user)
        return True

    def stop_instance(self, session: UserSession, payload: Mapping[str, Any]) -> bool:
        if not session.is_granted(ADMIN_GROUP):
            raise AccessDeniedError(f"{session.user} may not stop instances.")
        name = _name_from(payload)
        with self._lock:
            proxy = self._instances.pop(name, None)
        if proxy is None:
            raise InstanceNotFoundError(f"Instance <{name}>")
        proxy.close()
        logger.info("Instance <%s> stopped by %s", name, session.user)
        return True

    def close_all(self) -> None:
        with self._lock:
            instances = list(self._instances.values())
            self._instances.clear()
        for proxy in instances:
            proxy.close()
