"""
Kubernetes utilities for the node bootstrapper.

This module provides helper functions for interacting with the two Kubernetes
APIs the bootstrap chain spans:

- The management cluster, where the operator runs and HostedControlPlanes live
- The hosted cluster, reached through the admin kubeconfig of its control plane

Clients are plain values passed to the reconciler, never module globals, so a
pass can run against any pair of clusters (or fakes in tests).
"""

import logging
from typing import Any

from kubernetes import client, config

from node_bootstrapper.utils.upsert import ResourceOps

logger = logging.getLogger(__name__)


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client for the management cluster.

    This function handles both in-cluster and local development configurations.

    Returns:
        Configured Kubernetes API client
    """
    try:
        # Try in-cluster config first (when running in a pod)
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            # Fall back to local kubeconfig (for development)
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


class ClusterClient:
    """
    API handles for one cluster.

    Wraps the typed API groups the bootstrap chain needs and exposes a
    ``ResourceOps`` per managed kind for the upsert primitives.
    """

    def __init__(
        self,
        api_client: client.ApiClient | None = None,
        core_v1: Any | None = None,
        rbac_v1: Any | None = None,
        custom_objects: Any | None = None,
    ):
        """
        Initialize cluster client.

        Args:
            api_client: Configured API client for the cluster
            core_v1: CoreV1Api override, built from ``api_client`` if omitted
            rbac_v1: RbacAuthorizationV1Api override, built from ``api_client`` if omitted
            custom_objects: CustomObjectsApi override, built from ``api_client`` if omitted
        """
        self.api_client = api_client
        self.core_v1 = core_v1 or client.CoreV1Api(api_client)
        self.rbac_v1 = rbac_v1 or client.RbacAuthorizationV1Api(api_client)
        self.custom_objects = custom_objects or client.CustomObjectsApi(api_client)

    @property
    def namespaces(self) -> ResourceOps:
        return ResourceOps(
            kind="Namespace",
            read=self.core_v1.read_namespace,
            create=self.core_v1.create_namespace,
            replace=self.core_v1.replace_namespace,
            patch=self.core_v1.patch_namespace,
            namespaced=False,
        )

    @property
    def service_accounts(self) -> ResourceOps:
        return ResourceOps(
            kind="ServiceAccount",
            read=self.core_v1.read_namespaced_service_account,
            create=self.core_v1.create_namespaced_service_account,
            replace=self.core_v1.replace_namespaced_service_account,
            patch=self.core_v1.patch_namespaced_service_account,
        )

    @property
    def secrets(self) -> ResourceOps:
        return ResourceOps(
            kind="Secret",
            read=self.core_v1.read_namespaced_secret,
            create=self.core_v1.create_namespaced_secret,
            replace=self.core_v1.replace_namespaced_secret,
            patch=self.core_v1.patch_namespaced_secret,
        )

    @property
    def cluster_role_bindings(self) -> ResourceOps:
        return ResourceOps(
            kind="ClusterRoleBinding",
            read=self.rbac_v1.read_cluster_role_binding,
            create=self.rbac_v1.create_cluster_role_binding,
            replace=self.rbac_v1.replace_cluster_role_binding,
            patch=self.rbac_v1.patch_cluster_role_binding,
            namespaced=False,
        )

    def close(self) -> None:
        """Release the connection pool of the underlying API client."""
        if self.api_client is not None:
            self.api_client.close()


def new_hosted_cluster_client(kubeconfig: dict[str, Any]) -> ClusterClient:
    """
    Build a client for a hosted cluster from its parsed admin kubeconfig.

    The kubeconfig is not persisted and does not touch the process-wide
    default configuration.

    Args:
        kubeconfig: Parsed kubeconfig document

    Returns:
        ClusterClient for the hosted cluster

    Raises:
        kubernetes.config.ConfigException: If the kubeconfig is unusable
    """
    api_client = config.new_client_from_config_dict(
        config_dict=kubeconfig, persist_config=False
    )
    return ClusterClient(api_client)
