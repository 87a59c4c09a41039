"""
Error handling module for the node bootstrapper.

This module provides a comprehensive error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    CredentialsNotAvailableError,
    EndpointNotAvailableError,
    ExternalServiceError,
    KubeconfigError,
    KubeconfigSerializationError,
    KubernetesAPIError,
    OperatorError,
    PreconditionNotMetError,
    ReconciliationError,
    TemporaryError,
    TokenNotIssuedError,
    ValidationError,
)

__all__ = [
    "OperatorError",
    "ValidationError",
    "TemporaryError",
    "ExternalServiceError",
    "KubernetesAPIError",
    "ReconciliationError",
    "PreconditionNotMetError",
    "CredentialsNotAvailableError",
    "EndpointNotAvailableError",
    "TokenNotIssuedError",
    "KubeconfigError",
    "KubeconfigSerializationError",
]
