"""
Utils package - Utility modules for node bootstrapper functionality.

Contains helper modules for:
- Kubernetes client construction for the management and hosted clusters
- Idempotent create-or-update / create-or-patch primitives
- Kubeconfig parsing and bootstrap kubeconfig assembly
- Handler logging
"""
