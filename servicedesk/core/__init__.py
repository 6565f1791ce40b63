"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from servicedesk.core.exceptions import (
    ApplicationException,
    DomainException,
    ValidationException,
    AuthorizationException,
    ResourceNotFoundException,
    RepositoryException,
    PersistenceException,
    ConfigurationException,
    ExternalServiceException,
    EmailDeliveryException,
    OperationTimeoutException,
)
from servicedesk.core.results import OperationResult, OperationWarning

__all__ = [
    "ApplicationException",
    "DomainException",
    "ValidationException",
    "AuthorizationException",
    "ResourceNotFoundException",
    "RepositoryException",
    "PersistenceException",
    "ConfigurationException",
    "ExternalServiceException",
    "EmailDeliveryException",
    "OperationTimeoutException",
    "OperationResult",
    "OperationWarning",
]
