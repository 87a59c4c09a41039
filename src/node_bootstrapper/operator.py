#!/usr/bin/env python3
"""
Node Bootstrapper - Main entry point for the Kopf-based node bootstrap operator.

This operator runs on a management cluster next to hosted control planes and
provisions, for each of them, the credentials new compute nodes use for their
first request to the hosted API server:
- A node-bootstrapper ServiceAccount, ClusterRoleBinding and token secret on
  the hosted cluster
- A bootstrap kubeconfig secret in the HostedControlPlane namespace

Usage:
    python -m node_bootstrapper.operator
    # Or with kopf directly:
    kopf run -m node_bootstrapper.operator --all-namespaces

Environment Variables:
    NODE_BOOTSTRAPPER_NAMESPACES: Comma-separated list of namespaces to watch
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    See node_bootstrapper.settings for the full list.
"""

import asyncio
import contextlib
import logging
import random
import sys

import kopf

from node_bootstrapper.constants import KOPF_ANNOTATION_PREFIX

# Import handler modules to register them with kopf
from node_bootstrapper.handlers import hosted_control_plane
from node_bootstrapper.observability.logging import setup_structured_logging
from node_bootstrapper.observability.metrics import MetricsServer
from node_bootstrapper.settings import settings as operator_settings
from node_bootstrapper.utils.kubernetes import ClusterClient, get_kubernetes_client

# Global reference to metrics server for cleanup
_global_metrics_server: MetricsServer | None = None


def configure_logging() -> None:
    """Configure structured logging for the operator based on operator_settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


def get_watched_namespaces() -> list[str] | None:
    """
    Get the list of namespaces to watch from operator_settings.

    Returns:
        List of namespace names, or None to watch all namespaces
    """
    return operator_settings.watched_namespaces


@kopf.on.startup()
async def startup_handler(
    settings: kopf.OperatorSettings, memo: kopf.Memo, **_
) -> None:
    """
    Operator startup configuration.

    This handler runs once when the operator starts up and:
    - Configures peering for leader election
    - Keeps kopf state in annotations, never in HostedControlPlane status
    - Loads the management cluster configuration into memo
    - Starts the periodic resync sweep
    - Starts the metrics and health endpoint
    """
    logging.info("Starting Node Bootstrapper...")
    settings.watching.reconnect_backoff = 1.0

    # Each pod gets a unique priority to enable leader election
    settings.peering.name = operator_settings.operator_name
    settings.peering.priority = random.randint(0, 32767)
    logging.info(
        f"Peering priority set to {settings.peering.priority} for leader election"
    )

    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(
        prefix=KOPF_ANNOTATION_PREFIX
    )
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=KOPF_ANNOTATION_PREFIX
    )

    watched_namespaces = get_watched_namespaces()
    if watched_namespaces:
        logging.info(f"Watching namespaces: {', '.join(watched_namespaces)}")
    else:
        logging.info("Watching all namespaces (cluster-wide mode)")

    # Management cluster client, shared by all handlers via memo
    memo.management_client = ClusterClient(get_kubernetes_client())
    logging.info("Management cluster client initialized")

    memo.resync_task = asyncio.create_task(
        hosted_control_plane.run_periodic_resync(
            memo,
            interval=operator_settings.reconcile_interval_seconds,
            namespaces=watched_namespaces,
        )
    )

    try:
        metrics_server = MetricsServer(
            port=operator_settings.metrics_port, host=operator_settings.metrics_host
        )
        await metrics_server.start()

        global _global_metrics_server
        _global_metrics_server = metrics_server

    except OSError as e:
        logging.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logging.warning("Continuing without metrics server")


@kopf.on.cleanup()
async def cleanup_handler(memo: kopf.Memo, **_) -> None:
    """
    Operator cleanup handler.

    Stops the resync sweep and the metrics server and releases the
    management cluster client.
    """
    logging.info("Shutting down Node Bootstrapper...")

    resync_task = getattr(memo, "resync_task", None)
    if resync_task is not None:
        resync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await resync_task

    global _global_metrics_server
    if _global_metrics_server:
        try:
            await _global_metrics_server.stop()
        except Exception as e:
            logging.error(f"Error stopping metrics server: {e}")
        _global_metrics_server = None

    management_client = getattr(memo, "management_client", None)
    if management_client is not None:
        management_client.close()


@kopf.on.probe(id="healthz")
async def health_check(memo: kopf.Memo, **_) -> dict[str, str]:
    """
    Health check probe for Kubernetes liveness checks.

    Returns:
        Dictionary indicating operator health status
    """
    if getattr(memo, "management_client", None) is None:
        return {"status": "starting", "operator": operator_settings.operator_name}
    return {"status": "healthy", "operator": operator_settings.operator_name}


def main() -> None:
    """
    Main entry point for the operator.

    This function:
    1. Configures logging
    2. Determines namespace scope
    3. Runs the kopf operator with appropriate settings
    """
    configure_logging()

    watched_namespaces = get_watched_namespaces()

    try:
        if watched_namespaces:
            kopf.run(
                namespaces=watched_namespaces,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
        else:
            kopf.run(
                clusterwide=True,
                liveness_endpoint="http://0.0.0.0:8080/healthz",
            )
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
