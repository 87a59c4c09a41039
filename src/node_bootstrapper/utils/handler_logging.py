"""Shared logging utilities for kopf handlers.

This module provides common logging functions used by the handler modules
to ensure consistent logging format and behavior.
"""

import logging
from typing import Any

from node_bootstrapper.constants import HANDLER_ENTRY_LOG_LEVEL

logger = logging.getLogger(__name__)


def log_handler_entry(
    handler_type: str,
    resource_type: str,
    name: str,
    namespace: str,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log handler invocation at configurable level.

    The log level is controlled by the HANDLER_ENTRY_LOG_LEVEL environment
    variable (default: INFO). The periodic timer fires for every
    HostedControlPlane, so set it to DEBUG on large management clusters.

    Args:
        handler_type: Type of handler (create/resume, field, timer)
        resource_type: Type of resource (hostedcontrolplane)
        name: Resource name
        namespace: Resource namespace
        extra: Additional context to include in structured log
    """
    log_extra = {
        "resource_type": resource_type,
        "resource_name": name,
        "namespace": namespace,
        "operation": f"handler_{handler_type}",
    }
    if extra:
        log_extra.update(extra)

    logger.log(
        HANDLER_ENTRY_LOG_LEVEL,
        f"Handler invoked: {handler_type} {resource_type}/{name} in {namespace}",
        extra=log_extra,
    )
