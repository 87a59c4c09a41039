"""
Pydantic models for the HostedControlPlane fields the bootstrapper reads.

Only the status subset consumed by the bootstrap chain is modelled. The
status is owned by the hosted control plane controller and is treated as
read-only input here; unknown fields are ignored.
"""

from pydantic import BaseModel, Field


class KubeconfigSecretRef(BaseModel):
    """Reference to the secret holding the hosted cluster admin kubeconfig."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    name: str = Field(..., description="Name of the kubeconfig secret")
    key: str = Field("kubeconfig", description="Key within the secret")


class APIEndpoint(BaseModel):
    """Externally reachable address of the hosted API server."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    host: str = Field("", description="Hostname or IP of the API server")
    port: int = Field(0, description="Port of the API server", ge=0, le=65535)


class HostedControlPlaneStatus(BaseModel):
    """Status of a HostedControlPlane, as far as node bootstrap is concerned."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    kube_config: KubeconfigSecretRef | None = Field(
        None,
        alias="kubeConfig",
        description="Admin kubeconfig secret, unset until the control plane is up",
    )
    control_plane_endpoint: APIEndpoint = Field(
        default_factory=APIEndpoint,
        alias="controlPlaneEndpoint",
        description="API server endpoint of the hosted cluster",
    )

    @property
    def api_server_url(self) -> str:
        """URL nodes use to reach the hosted API server."""
        endpoint = self.control_plane_endpoint
        return f"https://{endpoint.host}:{endpoint.port}"
