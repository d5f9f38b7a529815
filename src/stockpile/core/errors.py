"""Error taxonomy for the Stockpile inventory service.

Every domain error carries the HTTP status code it maps to, so the router
can translate any :class:`StockpileError` with a single exception handler.

==============================  ======  ======================================
Error                           Status  Raised when
==============================  ======  ======================================
:class:`ValidationError`        400     Required input is missing or malformed
:class:`NotFoundError`          404     Unknown item id or vanished photo file
:class:`StorageError`           500     The blob directory cannot be written
:class:`MethodNotAllowedError`  405     No route matches the method and path
==============================  ======  ======================================
"""

from __future__ import annotations


class StockpileError(Exception):
    """Base exception for all Stockpile errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        """Initialize with a client-safe message."""
        self.message = message
        super().__init__(message)


class ValidationError(StockpileError):
    """Raised when required input is missing, empty or too large."""

    status_code = 400


class NotFoundError(StockpileError):
    """Raised when an item id or the photo file behind it does not exist."""

    status_code = 404


class StorageError(StockpileError):
    """Raised when a blob cannot be written to or removed from disk."""

    status_code = 500


class MethodNotAllowedError(StockpileError):
    """Raised for any method/path combination the router does not serve."""

    status_code = 405

    def __init__(self, message: str = "Method Not Allowed") -> None:
        super().__init__(message)
