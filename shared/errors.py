"""
Shared error handling for the access-control library.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error payload, suitable for returning from an embedding API."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AccessControlException(Exception):
    """Base exception for the access-control library."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class StoreLockedError(AccessControlException):
    """Raised when grants are authored after the store was locked."""

    def __init__(self, message: str = "Grant store is locked; grants cannot be modified", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_LOCKED", message, details)


class PersistenceReadError(AccessControlException):
    """The persistence provider failed to return grants."""

    def __init__(self, message: str = "Failed to read grants", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_READ_FAILED", message, details)


class PersistenceWriteError(AccessControlException):
    """The persistence provider rejected or failed to store grants."""

    def __init__(self, message: str = "Failed to persist grants", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_WRITE_FAILED", message, details)


class SynchronizerNotConfiguredError(AccessControlException):
    """A persistence operation was requested on a controller without a synchronizer."""

    def __init__(self, message: str = "No grant synchronizer configured", details: Optional[Dict[str, Any]] = None):
        super().__init__("SYNCHRONIZER_NOT_CONFIGURED", message, details)


class ProviderError(AccessControlException):
    """Errors raised by the bundled persistence providers."""

    def __init__(self, provider: str, message: str = "Provider error", details: Optional[Dict[str, Any]] = None):
        super().__init__("PROVIDER_ERROR", f"{provider}: {message}", details)
