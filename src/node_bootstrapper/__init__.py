"""
Node Bootstrapper - A kopf operator that provisions node bootstrap credentials
for hosted control planes.

For every HostedControlPlane on the management cluster the operator:
- Creates a node-bootstrapper service account on the hosted cluster
- Binds it to the system:node-bootstrapper cluster role
- Reads back the service account token issued by the hosted cluster
- Publishes a bootstrap kubeconfig secret on the management cluster
"""

__version__ = "0.1.0"
