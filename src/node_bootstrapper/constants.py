"""
Constants used throughout the node bootstrapper.

This module defines all constant values used by the operator including:
- The watched HostedControlPlane resource
- Well-known names of the resources the bootstrap chain manages
- Secret keys, labels, annotations and secret types
- Defaults for the generated kubeconfig
"""

import logging
import os

# Watched resource
HCP_GROUP = "hypershift.openshift.io"
HCP_PLURAL = "hostedcontrolplanes"

# kopf keeps handler progress and the last-handled state in these annotations
KOPF_ANNOTATION_PREFIX = "node-bootstrapper.hypershift.openshift.io"

# Admin credentials for the hosted cluster (management cluster, HCP namespace)
ADMIN_KUBECONFIG_SECRET_NAME = "service-network-admin-kubeconfig"
KUBECONFIG_KEY = "kubeconfig"

# Hosted cluster resources
MACHINE_CONFIG_OPERATOR_NAMESPACE = "openshift-machine-config-operator"
BOOTSTRAP_SERVICE_ACCOUNT_NAME = "node-bootstrapper"
BOOTSTRAP_TOKEN_SECRET_NAME = "node-bootstrapper-token"
BOOTSTRAP_CLUSTER_ROLE_NAME = "system:node-bootstrapper"
BOOTSTRAP_CLUSTER_ROLE_BINDING_NAME = "system:node-bootstrapper"

# Output (management cluster, HCP namespace)
BOOTSTRAP_KUBECONFIG_SECRET_NAME = "bootstrap-kubeconfig"
KUBECONFIG_SCOPE_LABEL = "hypershift.openshift.io/kubeconfig"
KUBECONFIG_SCOPE_BOOTSTRAP = "bootstrap"

# Service account token secrets (k8s.io/api/core/v1)
SERVICE_ACCOUNT_NAME_ANNOTATION = "kubernetes.io/service-account.name"
SECRET_TYPE_SERVICE_ACCOUNT_TOKEN = "kubernetes.io/service-account-token"
SERVICE_ACCOUNT_ROOT_CA_KEY = "ca.crt"
SERVICE_ACCOUNT_TOKEN_KEY = "token"

# RBAC
RBAC_API_GROUP = "rbac.authorization.k8s.io"
CLUSTER_ROLE_KIND = "ClusterRole"
SERVICE_ACCOUNT_KIND = "ServiceAccount"

# Generated kubeconfig entries
KUBECONFIG_CLUSTER_NAME = "local"
KUBECONFIG_USER_NAME = "kubelet"
KUBECONFIG_CONTEXT_NAME = "kubelet"

# Patch content type used for fields shared with other controllers
MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

# Handler logging - set to DEBUG in production to reduce noise
HANDLER_ENTRY_LOG_LEVEL = getattr(
    logging, os.getenv("HANDLER_ENTRY_LOG_LEVEL", "INFO").upper(), logging.INFO
)

# Error message templates
ERROR_CREDENTIALS_NOT_AVAILABLE = (
    "hosted control plane kubeconfig secret is not generated"
)
ERROR_ENDPOINT_NOT_AVAILABLE = (
    "failed to get apiserver url from status.controlPlaneEndpoint: host is empty"
)
ERROR_TOKEN_NOT_ISSUED = (
    "service account token has not been issued yet in secret '{}/{}'"
)
