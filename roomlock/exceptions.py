"""Custom exception hierarchy for roomlock."""

from __future__ import annotations

from typing import Any


class RoomlockError(Exception):
    """Base exception for all roomlock-specific errors."""
    
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RoomlockError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(RoomlockError):
    """Raised when a layout analysis or compiler input is malformed."""
    pass


class GeometryError(RoomlockError):
    """Raised when geometry derivation produces an unusable shape."""
    pass


class StorageError(RoomlockError):
    """Base class for geometry store errors."""
    pass


class PersistenceError(StorageError):
    """Raised when the underlying storage read or write fails."""
    pass


class RecordNotFoundError(StorageError):
    """Raised when a mutation targets a record that does not exist."""
    pass
