"""
Operator error hierarchy with categorization and retry logic.

This module defines the error types used throughout the node bootstrapper,
providing clear categorization and integration with kopf's retry mechanisms.
"""

import kopf


class OperatorError(Exception):
    """
    Base error class for all operator-related exceptions.

    Provides categorization, retry behavior, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize operator error.

        Args:
            message: Human-readable error description
            category: Error category (validation, api, configuration, external)
            retryable: Whether kopf should retry this operation
            delay: Suggested retry delay in seconds
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self):
        """Convert to appropriate kopf exception type."""
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        else:
            return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class ValidationError(OperatorError):
    """Error in resource specification validation."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        action = user_action or "Check resource specification and fix validation errors"
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(
            message=message, category="validation", retryable=False, user_action=action
        )


class TemporaryError(OperatorError):
    """Temporary error that should be retried."""

    def __init__(self, message: str, delay: int = 30, user_action: str | None = None):
        super().__init__(
            message=message,
            category="temporary",
            retryable=True,
            delay=delay,
            user_action=user_action
            or "Wait for automatic retry or check system status",
        )


class ExternalServiceError(OperatorError):
    """Error communicating with external services."""

    def __init__(
        self,
        service: str,
        message: str,
        retryable: bool = True,
        delay: int = 60,
        user_action: str | None = None,
    ):
        action = user_action or f"Check {service} connectivity and credentials"
        super().__init__(
            message=f"{service} error: {message}",
            category="external",
            retryable=retryable,
            delay=delay,
            user_action=action,
        )


class ReconciliationError(OperatorError):
    """Error raised when reconciliation cannot be completed."""

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        delay: int = 60,
        user_action: str | None = None,
    ):
        super().__init__(
            message=message,
            category="reconciliation",
            retryable=retryable,
            delay=delay,
            user_action=user_action
            or "Inspect operator logs and resource specification for issues",
        )


class KubernetesAPIError(ExternalServiceError):
    """Error communicating with Kubernetes API."""

    def __init__(self, message: str, reason: str | None = None, retryable: bool = True):
        if reason:
            message = f"{message} (reason: {reason})"

        # Some K8s errors are not retryable
        non_retryable_reasons = {"Forbidden", "Unauthorized", "Invalid"}
        if reason in non_retryable_reasons:
            retryable = False

        super().__init__(
            service="Kubernetes API",
            message=message,
            retryable=retryable,
            user_action="Check RBAC permissions and cluster connectivity",
        )


class PreconditionNotMetError(TemporaryError):
    """
    An input the bootstrap chain depends on is not populated yet.

    This is an expected transient state while the hosted control plane comes
    up, not a bug. The whole pass is retried later.
    """

    def __init__(self, message: str, delay: int = 15, user_action: str | None = None):
        super().__init__(
            message=message,
            delay=delay,
            user_action=user_action
            or "Wait for the hosted control plane to finish provisioning",
        )


class CredentialsNotAvailableError(PreconditionNotMetError):
    """HostedControlPlane status does not reference an admin kubeconfig yet."""


class EndpointNotAvailableError(PreconditionNotMetError):
    """HostedControlPlane status has no API server endpoint host yet."""


class TokenNotIssuedError(PreconditionNotMetError):
    """The service account token secret exists but is not populated yet."""

    def __init__(self, message: str, delay: int = 15):
        super().__init__(
            message=message,
            delay=delay,
            user_action="Wait for the hosted cluster to issue the service account token",
        )


class KubeconfigError(OperatorError):
    """A kubeconfig could not be loaded or turned into a client."""

    def __init__(
        self, message: str, retryable: bool = True, cause: Exception | None = None
    ):
        super().__init__(
            message=message,
            category="kubeconfig",
            retryable=retryable,
            delay=30,
            user_action="Check the hosted control plane admin kubeconfig secret",
            cause=cause,
        )


class KubeconfigSerializationError(ReconciliationError):
    """The bootstrap kubeconfig document could not be serialized."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            retryable=False,
            user_action="Inspect the service account token secret contents",
        )
