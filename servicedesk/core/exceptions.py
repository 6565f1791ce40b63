"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class AuthorizationException(ApplicationException):
    """Actor is not allowed to act on the resource."""

    def __init__(self, message: str = "Forbidden", details: Optional[dict] = None):
        super().__init__(message, details)


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class PersistenceException(RepositoryException):
    """A write failed; ``step`` names the operation step that did not commit."""

    def __init__(self, step: str, message: str, details: Optional[dict] = None):
        self.step = step
        super().__init__(f"{step} failed: {message}", {"step": step, **(details or {})})


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class EmailDeliveryException(ExternalServiceException):
    """Email provider unreachable or returned a non-2xx response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.status_code = status_code
        super().__init__(
            "Email Provider",
            message,
            {"status_code": status_code, **(details or {})}
        )


class OperationTimeoutException(ExternalServiceException):
    """An external call did not finish within its deadline."""

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            operation,
            f"timed out after {timeout_seconds}s",
            {"operation": operation, "timeout_seconds": timeout_seconds}
        )
