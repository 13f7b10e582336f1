"""
Custom exceptions for request validation and configuration.

WHAT: Domain-specific exceptions raised before any I/O happens
WHY: Misconfiguration must fail loudly instead of being silently defaulted
HOW: Exception classes carrying an error code, message and details
"""

from typing import Optional, Any


class CompletionBackendException(Exception):
    """Base class for completion backend exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class InvalidRequestError(CompletionBackendException):
    """Raised when a generation or autocomplete request is malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_REQUEST",
            details={"field": field} if field else None
        )


class ConfigurationError(CompletionBackendException):
    """Raised for invalid engine or provider configuration."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details={"setting": setting} if setting else None
        )
