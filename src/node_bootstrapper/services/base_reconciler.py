"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class that implements standard
patterns for logging, metrics, error conversion and retry logic.
"""

import time
from abc import ABC, abstractmethod
from typing import Any

from kubernetes.client.rest import ApiException

from ..errors import (
    KubernetesAPIError,
    OperatorError,
    PreconditionNotMetError,
    TemporaryError,
)
from ..observability.logging import OperatorLogger
from ..observability.metrics import metrics_collector


class BaseReconciler(ABC):
    """
    Base class for resource reconcilers.

    Provides common patterns for:
    - Correlated start/success/error logging
    - Reconciliation metrics
    - Conversion of domain errors into kopf retry errors

    The watched resource's status is never written; it belongs to another
    controller and is only read as input.
    """

    resource_type: str | None = None

    def __init__(self):
        self.logger = OperatorLogger(self.__class__.__name__)

    def _resource_type(self) -> str:
        if self.resource_type:
            return self.resource_type
        return self.__class__.__name__.replace("Reconciler", "").lower()

    async def reconcile(
        self,
        name: str,
        namespace: str,
        status: dict[str, Any] | None,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Main reconciliation entry point with metrics tracking.

        Args:
            name: Resource name
            namespace: Resource namespace
            status: Current status of the watched resource (read-only)
            **kwargs: Additional handler arguments

        Returns:
            Summary of what the pass did

        Raises:
            kopf.TemporaryError: For retryable failures and unmet preconditions
            kopf.PermanentError: For failures a retry cannot fix
        """
        resource_type = self._resource_type()
        start_time = time.time()

        self.logger.log_reconciliation_start(
            resource_type=resource_type, resource_name=name, namespace=namespace
        )

        async with metrics_collector.track_reconciliation(
            resource_type=resource_type,
            namespace=namespace,
            name=name,
            operation="reconcile",
        ):
            try:
                result = await self.do_reconcile(name, namespace, status, **kwargs)

                duration = time.time() - start_time
                self.logger.log_reconciliation_success(
                    resource_type=resource_type,
                    resource_name=name,
                    namespace=namespace,
                    duration=duration,
                )

                return result

            except OperatorError as e:
                duration = time.time() - start_time
                self.logger.log_reconciliation_error(
                    resource_type=resource_type,
                    resource_name=name,
                    namespace=namespace,
                    error=e,
                    duration=duration,
                    expected=isinstance(e, PreconditionNotMetError),
                )
                raise e.as_kopf_error() from e

            except ApiException as e:
                http_status = getattr(e, "status", None)
                error = KubernetesAPIError(
                    message=str(e),
                    reason=getattr(e, "reason", None),
                    retryable=http_status is not None
                    and http_status >= 500,  # 5xx errors are retryable
                )
                duration = time.time() - start_time
                self.logger.log_reconciliation_error(
                    resource_type=resource_type,
                    resource_name=name,
                    namespace=namespace,
                    error=error,
                    duration=duration,
                )
                raise error.as_kopf_error() from e

            except Exception as e:
                # Wrap unexpected errors as temporary to allow retry
                error = TemporaryError(
                    f"Unexpected error during reconciliation: {str(e)}"
                )
                duration = time.time() - start_time
                self.logger.log_reconciliation_error(
                    resource_type=resource_type,
                    resource_name=name,
                    namespace=namespace,
                    error=error,
                    duration=duration,
                )
                raise error.as_kopf_error() from e

    @abstractmethod
    async def do_reconcile(
        self,
        name: str,
        namespace: str,
        status: dict[str, Any] | None,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Perform the actual reconciliation work.

        Subclasses raise OperatorError subclasses for expected failures;
        ``reconcile`` takes care of logging and kopf conversion.
        """
        raise NotImplementedError
