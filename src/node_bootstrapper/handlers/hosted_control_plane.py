"""
HostedControlPlane handlers - Keeps the node bootstrap chain in place.

A pass of the bootstrap chain runs:
- When a HostedControlPlane is created, or found when the operator resumes
- When its admin kubeconfig reference or API endpoint shows up or changes
- Periodically from a resync sweep, so deleted or drifted artifacts are put back

HostedControlPlanes are owned by the hosted control plane controller. No
handler here requires a finalizer and none writes status; kopf only records
its handler progress in annotations under KOPF_ANNOTATION_PREFIX. The
periodic re-assertion is a sweep over a listing instead of a kopf timer,
because kopf adds a finalizer to every object a timer is attached to.
"""

import asyncio
import logging
from typing import Any

import kopf
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from node_bootstrapper.constants import HCP_GROUP, HCP_PLURAL
from node_bootstrapper.services import NodeBootstrapReconciler
from node_bootstrapper.settings import settings
from node_bootstrapper.utils.handler_logging import log_handler_entry
from node_bootstrapper.utils.kubernetes import ClusterClient

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "hostedcontrolplane"
HCP_VERSION = settings.hcp_api_version


async def run_bootstrap_pass(
    handler_type: str,
    name: str,
    namespace: str,
    status: Any,
    memo: kopf.Memo,
) -> None:
    """
    Delegate one pass of the bootstrap chain to the service layer.

    Args:
        handler_type: Which handler triggered the pass, for logging
        name: HostedControlPlane name
        namespace: HostedControlPlane namespace
        status: HostedControlPlane status
        memo: Operator memo holding the management cluster client
    """
    log_handler_entry(handler_type, RESOURCE_TYPE, name, namespace)

    reconciler = NodeBootstrapReconciler(management=memo.management_client)
    await reconciler.reconcile(name=name, namespace=namespace, status=status)


@kopf.on.create(HCP_PLURAL, group=HCP_GROUP, version=HCP_VERSION)
@kopf.on.resume(HCP_PLURAL, group=HCP_GROUP, version=HCP_VERSION)
async def ensure_node_bootstrap(
    name: str,
    namespace: str,
    status: dict[str, Any],
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """
    Ensure the bootstrap chain exists for a new or resumed HostedControlPlane.

    Until the control plane has published its admin kubeconfig and endpoint
    the pass fails with a temporary error and kopf retries it.
    """
    await run_bootstrap_pass("create/resume", name, namespace, status, memo)
    # Return None to avoid Kopf creating status subpaths
    return None


@kopf.on.field(
    HCP_PLURAL, group=HCP_GROUP, version=HCP_VERSION, field="status.kubeConfig"
)
async def on_kubeconfig_change(
    name: str,
    namespace: str,
    status: dict[str, Any],
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Re-run the chain when the admin kubeconfig reference changes."""
    await run_bootstrap_pass("field", name, namespace, status, memo)
    return None


@kopf.on.field(
    HCP_PLURAL,
    group=HCP_GROUP,
    version=HCP_VERSION,
    field="status.controlPlaneEndpoint",
)
async def on_endpoint_change(
    name: str,
    namespace: str,
    status: dict[str, Any],
    memo: kopf.Memo,
    **kwargs: Any,
) -> None:
    """Re-run the chain so the bootstrap kubeconfig points at the new endpoint."""
    await run_bootstrap_pass("field", name, namespace, status, memo)
    return None


async def list_hosted_control_planes(
    management: ClusterClient, namespaces: list[str] | None = None
) -> list[dict[str, Any]]:
    """
    List HostedControlPlanes on the management cluster.

    Args:
        management: Client for the management cluster
        namespaces: Namespaces to list in, or None for all namespaces

    Returns:
        Raw HostedControlPlane objects
    """
    api = management.custom_objects
    if not namespaces:
        response = await asyncio.to_thread(
            api.list_cluster_custom_object, HCP_GROUP, HCP_VERSION, HCP_PLURAL
        )
        return response.get("items", [])

    items: list[dict[str, Any]] = []
    for namespace in namespaces:
        response = await asyncio.to_thread(
            api.list_namespaced_custom_object,
            HCP_GROUP,
            HCP_VERSION,
            namespace,
            HCP_PLURAL,
        )
        items.extend(response.get("items", []))
    return items


async def resync_hosted_control_planes(
    memo: kopf.Memo, namespaces: list[str] | None = None
) -> int:
    """
    Run a pass of the bootstrap chain for every HostedControlPlane in scope.

    HostedControlPlanes being deleted are skipped. A failed pass has already
    been logged and counted by the reconciler and does not stop the sweep;
    it is retried on the next one.

    Returns:
        Number of passes that failed
    """
    failed = 0
    for item in await list_hosted_control_planes(memo.management_client, namespaces):
        metadata = item.get("metadata", {})
        if metadata.get("deletionTimestamp"):
            continue
        try:
            await run_bootstrap_pass(
                "resync",
                metadata["name"],
                metadata["namespace"],
                item.get("status"),
                memo,
            )
        except (kopf.TemporaryError, kopf.PermanentError):
            failed += 1
    return failed


async def run_periodic_resync(
    memo: kopf.Memo, interval: float, namespaces: list[str] | None = None
) -> None:
    """Sweep all HostedControlPlanes every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            failed = await resync_hosted_control_planes(memo, namespaces)
        except (ApiException, TransportError, OSError) as e:
            logger.error(f"Failed to list HostedControlPlanes for resync: {e}")
            continue
        if failed:
            logger.info(f"Resync finished, {failed} pass(es) will be retried")
