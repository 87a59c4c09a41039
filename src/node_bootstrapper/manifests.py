"""
Resource skeletons for the node bootstrap chain.

Each function returns an identity-only Kubernetes object (name and, where
applicable, namespace). The upsert primitives fill in the rest through a
mutate function, so these never carry spec, data or status.
"""

from collections.abc import Callable
from typing import Any

from kubernetes import client

from node_bootstrapper.constants import (
    ADMIN_KUBECONFIG_SECRET_NAME,
    BOOTSTRAP_CLUSTER_ROLE_BINDING_NAME,
    BOOTSTRAP_CLUSTER_ROLE_NAME,
    BOOTSTRAP_KUBECONFIG_SECRET_NAME,
    BOOTSTRAP_SERVICE_ACCOUNT_NAME,
    BOOTSTRAP_TOKEN_SECRET_NAME,
)


def _cluster_role_binding(name: str, _namespace: str | None) -> Any:
    # role_ref is required by the model; the binding mutation fills it in.
    return client.V1ClusterRoleBinding(
        metadata=client.V1ObjectMeta(name=name),
        role_ref=client.V1RoleRef(api_group="", kind="", name=""),
    )


_SKELETONS: dict[str, Callable[[str, str | None], Any]] = {
    "Namespace": lambda name, _ns: client.V1Namespace(
        metadata=client.V1ObjectMeta(name=name)
    ),
    "ServiceAccount": lambda name, ns: client.V1ServiceAccount(
        metadata=client.V1ObjectMeta(name=name, namespace=ns)
    ),
    "ClusterRole": lambda name, _ns: client.V1ClusterRole(
        metadata=client.V1ObjectMeta(name=name)
    ),
    "ClusterRoleBinding": _cluster_role_binding,
    "Secret": lambda name, ns: client.V1Secret(
        metadata=client.V1ObjectMeta(name=name, namespace=ns)
    ),
}


def skeleton(kind: str, name: str, namespace: str | None = None) -> Any:
    """
    Build an identity-only object of the given kind.

    Cluster-scoped kinds ignore ``namespace``.

    Raises:
        ValueError: If ``kind`` is not one of the kinds the bootstrap chain uses
    """
    try:
        factory = _SKELETONS[kind]
    except KeyError:
        raise ValueError(
            f"Unsupported kind '{kind}', expected one of {sorted(_SKELETONS)}"
        ) from None
    return factory(name, namespace)


def bootstrap_machine_config_namespace(namespace: str) -> client.V1Namespace:
    return skeleton("Namespace", namespace)


def bootstrap_service_account(namespace: str) -> client.V1ServiceAccount:
    return skeleton("ServiceAccount", BOOTSTRAP_SERVICE_ACCOUNT_NAME, namespace)


def bootstrap_cluster_role() -> client.V1ClusterRole:
    # Built into every cluster; only referenced by name, never written.
    return skeleton("ClusterRole", BOOTSTRAP_CLUSTER_ROLE_NAME)


def bootstrap_cluster_role_binding() -> client.V1ClusterRoleBinding:
    return skeleton("ClusterRoleBinding", BOOTSTRAP_CLUSTER_ROLE_BINDING_NAME)


def bootstrap_service_account_token_secret(namespace: str) -> client.V1Secret:
    return skeleton("Secret", BOOTSTRAP_TOKEN_SECRET_NAME, namespace)


def bootstrap_kubeconfig_secret(namespace: str) -> client.V1Secret:
    return skeleton("Secret", BOOTSTRAP_KUBECONFIG_SECRET_NAME, namespace)


def admin_kubeconfig_secret(namespace: str) -> client.V1Secret:
    return skeleton("Secret", ADMIN_KUBECONFIG_SECRET_NAME, namespace)
