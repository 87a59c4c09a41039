"""
Node bootstrap reconciler - Maintains the credential chain new nodes join with.

For one HostedControlPlane this service makes sure that, on the hosted
cluster, a ServiceAccount exists with the node-bootstrapper ClusterRole bound
to it and a service account token secret issued for it, and that on the
management cluster a kubeconfig embedding that token is stored next to the
control plane, ready to be handed to kubelets for their first client CSR.

Each pass re-asserts the whole chain. Every step converges from whatever a
previous, possibly interrupted, pass left behind, and a pass that finds
everything in place performs no writes.
"""

import base64
from collections.abc import Callable
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from pydantic import ValidationError as PydanticValidationError
from urllib3.exceptions import HTTPError as TransportError

from node_bootstrapper import manifests
from node_bootstrapper.constants import (
    CLUSTER_ROLE_KIND,
    ERROR_CREDENTIALS_NOT_AVAILABLE,
    ERROR_ENDPOINT_NOT_AVAILABLE,
    ERROR_TOKEN_NOT_ISSUED,
    KUBECONFIG_KEY,
    KUBECONFIG_SCOPE_BOOTSTRAP,
    KUBECONFIG_SCOPE_LABEL,
    MACHINE_CONFIG_OPERATOR_NAMESPACE,
    RBAC_API_GROUP,
    SECRET_TYPE_SERVICE_ACCOUNT_TOKEN,
    SERVICE_ACCOUNT_KIND,
    SERVICE_ACCOUNT_NAME_ANNOTATION,
)
from node_bootstrapper.errors import (
    CredentialsNotAvailableError,
    EndpointNotAvailableError,
    KubeconfigError,
    KubernetesAPIError,
    TokenNotIssuedError,
    ValidationError,
)
from node_bootstrapper.models.hosted_control_plane import HostedControlPlaneStatus
from node_bootstrapper.observability.metrics import metrics_collector
from node_bootstrapper.settings import settings
from node_bootstrapper.utils.kubeconfig import (
    kubeconfig_from_token_secret,
    load_kubeconfig,
    token_secret_is_populated,
)
from node_bootstrapper.utils.kubernetes import ClusterClient, new_hosted_cluster_client
from node_bootstrapper.utils.upsert import (
    MutateFn,
    OperationResult,
    ResourceOps,
    create_or_patch,
    create_or_update,
)

from .base_reconciler import BaseReconciler

HostedClientFactory = Callable[[dict[str, Any]], ClusterClient]

# Unauthorized, Forbidden, Unprocessable Entity
NON_RETRYABLE_STATUSES = frozenset({401, 403, 422})


def _no_changes(_obj: Any) -> None:
    """Existence is all that is asserted for namespaces and service accounts."""


def _api_error(action: str, what: str, error: Exception) -> KubernetesAPIError:
    if not isinstance(error, ApiException):
        return KubernetesAPIError(
            message=f"failed to {action} {what}: {type(error).__name__}: {error}",
            reason="ConnectionError",
            retryable=True,
        )
    return KubernetesAPIError(
        message=f"failed to {action} {what}: HTTP {error.status}",
        reason=error.reason,
        retryable=error.status not in NON_RETRYABLE_STATUSES,
    )


def bind_service_account(
    binding: client.V1ClusterRoleBinding,
    role: client.V1ClusterRole,
    service_account: client.V1ServiceAccount,
) -> None:
    """
    Point ``binding`` at ``role`` with ``service_account`` as its only subject.

    Any roleRef or subjects already on the binding are overwritten.
    """
    binding.role_ref = client.V1RoleRef(
        api_group=RBAC_API_GROUP,
        kind=CLUSTER_ROLE_KIND,
        name=role.metadata.name,
    )
    binding.subjects = [
        client.RbacV1Subject(
            kind=SERVICE_ACCOUNT_KIND,
            name=service_account.metadata.name,
            namespace=service_account.metadata.namespace,
        )
    ]


def mark_as_token_secret(
    secret: client.V1Secret, service_account: client.V1ServiceAccount
) -> None:
    """Ask the token controller to issue a token for ``service_account``."""
    if secret.metadata.annotations is None:
        secret.metadata.annotations = {}
    secret.metadata.annotations[SERVICE_ACCOUNT_NAME_ANNOTATION] = (
        service_account.metadata.name
    )
    secret.type = SECRET_TYPE_SERVICE_ACCOUNT_TOKEN


def store_bootstrap_kubeconfig(
    secret: client.V1Secret, key: str, document: bytes
) -> None:
    """Label ``secret`` as the bootstrap kubeconfig and put ``document`` under ``key``."""
    if secret.metadata.labels is None:
        secret.metadata.labels = {}
    secret.metadata.labels[KUBECONFIG_SCOPE_LABEL] = KUBECONFIG_SCOPE_BOOTSTRAP
    if secret.data is None:
        secret.data = {}
    secret.data[key or KUBECONFIG_KEY] = base64.b64encode(document).decode()


class NodeBootstrapReconciler(BaseReconciler):
    """
    Reconciler for the node bootstrap credential chain of a HostedControlPlane.

    The management cluster client is passed in and outlives the reconciler;
    a hosted cluster client is built from the admin kubeconfig for every pass
    and closed when the pass ends.
    """

    resource_type = "hostedcontrolplane"

    def __init__(
        self,
        management: ClusterClient,
        hosted_client_factory: HostedClientFactory | None = None,
        kubeconfig_key: str | None = None,
        conflict_retries: int | None = None,
        not_ready_delay: int | None = None,
    ):
        """
        Initialize the node bootstrap reconciler.

        Args:
            management: Client for the management cluster
            hosted_client_factory: Builds a hosted cluster client from a
                parsed kubeconfig, new_hosted_cluster_client by default
            kubeconfig_key: Data key of the bootstrap kubeconfig secret
            conflict_retries: Re-fetch attempts after an update conflict
            not_ready_delay: Retry delay while inputs are not populated yet
        """
        super().__init__()
        self.management = management
        self.hosted_client_factory = hosted_client_factory or new_hosted_cluster_client
        self.kubeconfig_key = (
            kubeconfig_key
            if kubeconfig_key is not None
            else settings.bootstrap_kubeconfig_key
        )
        self.conflict_retries = (
            conflict_retries
            if conflict_retries is not None
            else settings.upsert_conflict_retries
        )
        self.not_ready_delay = (
            not_ready_delay
            if not_ready_delay is not None
            else settings.not_ready_retry_delay_seconds
        )

    async def do_reconcile(
        self,
        name: str,
        namespace: str,
        status: dict[str, Any] | None,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Run one pass of the bootstrap chain.

        Args:
            name: HostedControlPlane name
            namespace: HostedControlPlane namespace
            status: HostedControlPlane status

        Returns:
            Mapping of resource to the OperationResult of its upsert
        """
        try:
            hcp_status = HostedControlPlaneStatus.model_validate(dict(status or {}))
        except PydanticValidationError as e:
            raise ValidationError(str(e), field="status") from e

        if hcp_status.kube_config is None:
            raise CredentialsNotAvailableError(
                ERROR_CREDENTIALS_NOT_AVAILABLE, delay=self.not_ready_delay
            )

        kubeconfig = await self._load_admin_kubeconfig(namespace)
        hosted = self._connect_hosted_cluster(kubeconfig)
        try:
            return await self._converge(hosted, namespace, hcp_status)
        finally:
            hosted.close()

    async def _load_admin_kubeconfig(self, namespace: str) -> dict[str, Any]:
        skeleton = manifests.admin_kubeconfig_secret(namespace)
        what = self.management.secrets.describe(skeleton)
        try:
            secret = await self.management.secrets.fetch(skeleton)
        except (ApiException, TransportError, OSError) as e:
            raise _api_error("get hosted control plane kubeconfig", what, e) from e

        raw = (secret.data or {}).get(KUBECONFIG_KEY)
        if not raw:
            raise KubeconfigError(
                f"failed to load hosted control plane kubeconfig from {what}: "
                f"key '{KUBECONFIG_KEY}' is missing"
            )
        try:
            document = base64.b64decode(raw, validate=True)
        except ValueError as e:
            raise KubeconfigError(
                f"failed to load hosted control plane kubeconfig from {what}: {e}",
                cause=e,
            ) from e
        return load_kubeconfig(document)

    def _connect_hosted_cluster(self, kubeconfig: dict[str, Any]) -> ClusterClient:
        try:
            return self.hosted_client_factory(kubeconfig)
        except (config.ConfigException, ValueError, KeyError) as e:
            raise KubeconfigError(
                f"failed to create hosted control plane client: {e}", cause=e
            ) from e

    async def _upsert(
        self,
        ops: ResourceOps,
        obj: Any,
        mutate: MutateFn,
        patch: bool = False,
    ) -> tuple[Any, OperationResult]:
        upsert = create_or_patch if patch else create_or_update
        try:
            live, result = await upsert(
                ops, obj, mutate, conflict_retries=self.conflict_retries
            )
        except (ApiException, TransportError, OSError) as e:
            raise _api_error("reconcile", ops.describe(obj), e) from e

        metrics_collector.record_resource_operation(ops.kind, result)
        self.logger.debug(
            f"{ops.describe(obj)}: {result}", resource_type=ops.kind, result=result
        )
        return live, result

    async def _converge(
        self,
        hosted: ClusterClient,
        namespace: str,
        hcp_status: HostedControlPlaneStatus,
    ) -> dict[str, Any]:
        results: dict[str, Any] = {}

        ns = manifests.bootstrap_machine_config_namespace(
            MACHINE_CONFIG_OPERATOR_NAMESPACE
        )
        _, results["namespace"] = await self._upsert(
            hosted.namespaces, ns, _no_changes
        )

        service_account = manifests.bootstrap_service_account(
            MACHINE_CONFIG_OPERATOR_NAMESPACE
        )
        _, results["serviceAccount"] = await self._upsert(
            hosted.service_accounts, service_account, _no_changes
        )

        role = manifests.bootstrap_cluster_role()
        binding = manifests.bootstrap_cluster_role_binding()
        _, results["clusterRoleBinding"] = await self._upsert(
            hosted.cluster_role_bindings,
            binding,
            lambda obj: bind_service_account(obj, role, service_account),
        )

        token_secret = manifests.bootstrap_service_account_token_secret(
            MACHINE_CONFIG_OPERATOR_NAMESPACE
        )
        _, results["tokenSecret"] = await self._upsert(
            hosted.secrets,
            token_secret,
            lambda obj: mark_as_token_secret(obj, service_account),
            patch=True,
        )

        # The token controller fills in data asynchronously; read it back.
        try:
            token_secret = await hosted.secrets.fetch(token_secret)
        except (ApiException, TransportError, OSError) as e:
            raise _api_error(
                "get bootstrapper service account token",
                hosted.secrets.describe(token_secret),
                e,
            ) from e
        if not token_secret_is_populated(token_secret):
            raise TokenNotIssuedError(
                ERROR_TOKEN_NOT_ISSUED.format(
                    token_secret.metadata.namespace, token_secret.metadata.name
                ),
                delay=self.not_ready_delay,
            )

        if not hcp_status.control_plane_endpoint.host:
            raise EndpointNotAvailableError(
                ERROR_ENDPOINT_NOT_AVAILABLE, delay=self.not_ready_delay
            )
        server_url = hcp_status.api_server_url

        document, _ = kubeconfig_from_token_secret(token_secret, server_url)

        bootstrap_secret = manifests.bootstrap_kubeconfig_secret(namespace)
        _, results["bootstrapKubeconfigSecret"] = await self._upsert(
            self.management.secrets,
            bootstrap_secret,
            lambda obj: store_bootstrap_kubeconfig(obj, self.kubeconfig_key, document),
        )

        self.logger.info(
            f"Bootstrap kubeconfig for {server_url} is up to date in "
            f"{namespace}/{bootstrap_secret.metadata.name}",
            namespace=namespace,
            operation="bootstrap_kubeconfig",
        )
        return results
