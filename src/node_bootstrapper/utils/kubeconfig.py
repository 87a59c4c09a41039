"""
Kubeconfig loading and bootstrap kubeconfig assembly.

``assemble_kubeconfig`` is a pure function: it has no clock, randomness or
I/O, and serializes with sorted keys, so identical inputs always give
byte-identical documents. Repeated passes therefore leave the bootstrap
kubeconfig secret untouched unless the token, CA or endpoint changed.
"""

import base64
import binascii
from typing import Any

import yaml
from kubernetes import client
from pydantic import ValidationError as PydanticValidationError

from node_bootstrapper.constants import (
    KUBECONFIG_CLUSTER_NAME,
    KUBECONFIG_CONTEXT_NAME,
    KUBECONFIG_USER_NAME,
    SERVICE_ACCOUNT_ROOT_CA_KEY,
    SERVICE_ACCOUNT_TOKEN_KEY,
)
from node_bootstrapper.errors import KubeconfigError, KubeconfigSerializationError
from node_bootstrapper.models.kubeconfig import (
    AuthInfo,
    Cluster,
    Context,
    KubeConfig,
    NamedAuthInfo,
    NamedCluster,
    NamedContext,
)


def load_kubeconfig(raw: bytes) -> dict[str, Any]:
    """
    Parse and validate a serialized kubeconfig.

    Args:
        raw: Kubeconfig document (YAML or JSON)

    Returns:
        The parsed document, suitable for ``kubernetes.config`` loaders

    Raises:
        KubeconfigError: If the document is not valid YAML or not a kubeconfig
    """
    try:
        document = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise KubeconfigError(f"kubeconfig is not valid YAML: {e}", cause=e) from e

    if not isinstance(document, dict):
        raise KubeconfigError("kubeconfig must be a mapping")

    try:
        KubeConfig.model_validate(document)
    except PydanticValidationError as e:
        raise KubeconfigError(f"invalid kubeconfig: {e}", cause=e) from e

    return document


def assemble_kubeconfig(
    server_url: str, ca_data: bytes, token: bytes
) -> tuple[bytes, bytes]:
    """
    Build the bootstrap kubeconfig kubelet uses for its client CSR.

    The document holds exactly one cluster (``local``), one user
    (``kubelet``) and one context (``kubelet``) linking them, which is also
    the current context.

    Args:
        server_url: Hosted API server URL
        ca_data: PEM CA bundle of the hosted API server
        token: Service account bearer token

    Returns:
        Tuple of the serialized kubeconfig and the CA bundle it embeds

    Raises:
        KubeconfigSerializationError: If the document cannot be serialized
    """
    try:
        kubeconfig = KubeConfig(
            clusters=[
                NamedCluster(
                    name=KUBECONFIG_CLUSTER_NAME,
                    cluster=Cluster(
                        server=server_url,
                        certificate_authority_data=base64.b64encode(ca_data).decode(),
                    ),
                )
            ],
            auth_infos=[
                NamedAuthInfo(
                    name=KUBECONFIG_USER_NAME,
                    auth_info=AuthInfo(token=token.decode()),
                )
            ],
            contexts=[
                NamedContext(
                    name=KUBECONFIG_CONTEXT_NAME,
                    context=Context(
                        cluster=KUBECONFIG_CLUSTER_NAME,
                        auth_info=KUBECONFIG_USER_NAME,
                    ),
                )
            ],
            current_context=KUBECONFIG_CONTEXT_NAME,
        )
        document = yaml.safe_dump(
            kubeconfig.model_dump(by_alias=True, exclude_none=True),
            default_flow_style=False,
            sort_keys=True,
        )
    except (UnicodeDecodeError, PydanticValidationError, yaml.YAMLError) as e:
        raise KubeconfigSerializationError(
            f"failed to serialize bootstrap kubeconfig: {e}"
        ) from e

    return document.encode(), ca_data


def _decode_secret_value(secret: client.V1Secret, key: str) -> bytes:
    value = (secret.data or {}).get(key)
    if not value:
        return b""
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise KubeconfigSerializationError(
            f"secret '{secret.metadata.name}' key '{key}' is not valid base64: {e}"
        ) from e


def kubeconfig_from_token_secret(
    secret: client.V1Secret, server_url: str
) -> tuple[bytes, bytes]:
    """
    Build the bootstrap kubeconfig from a populated service account token secret.

    Args:
        secret: Token secret with ``ca.crt`` and ``token`` data
        server_url: Hosted API server URL

    Returns:
        Tuple of the serialized kubeconfig and the CA bundle it embeds
    """
    ca_data = _decode_secret_value(secret, SERVICE_ACCOUNT_ROOT_CA_KEY)
    token = _decode_secret_value(secret, SERVICE_ACCOUNT_TOKEN_KEY)
    return assemble_kubeconfig(server_url, ca_data, token)


def token_secret_is_populated(secret: client.V1Secret) -> bool:
    """Whether the token controller has filled in both CA and token."""
    data = secret.data or {}
    return bool(data.get(SERVICE_ACCOUNT_ROOT_CA_KEY)) and bool(
        data.get(SERVICE_ACCOUNT_TOKEN_KEY)
    )
