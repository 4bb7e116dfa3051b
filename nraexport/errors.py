"""Shared error types for nraexport layers."""

from __future__ import annotations


class NraExportError(Exception):
    """Base class for all nraexport errors."""


class ConfigError(NraExportError, ValueError):
    """Raised when a config file is invalid."""


class InvalidInputError(NraExportError, ValueError):
    """Raised when a command argument has the wrong type or shape."""


class AccessDeniedError(NraExportError, PermissionError):
    """Raised when a command is issued without the required privilege."""


class DuplicateInstanceError(NraExportError):
    """Raised when starting an instance whose name is already live."""


class InstanceNotFoundError(NraExportError, KeyError):
    """Raised when operating on an unknown instance name."""


class ProxyFailureError(NraExportError, RuntimeError):
    """Raised when the instrument proxy reports a failed open/save/read."""


class FileOpenError(ProxyFailureError):
    """Raised when the proxy refuses to open one result file; the session stays usable."""


class DepthExhaustionError(NraExportError, RuntimeError):
    """Raised when the layer stack runs out before the ion energy is exhausted."""


class ReportError(NraExportError, ValueError):
    """Raised when report inputs are inconsistent with the store."""
