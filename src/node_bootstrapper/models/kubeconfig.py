"""
Pydantic models for the kubeconfig (clientcmd v1 Config) document.

Field aliases follow the on-disk kubeconfig format so that
``model_dump(by_alias=True)`` yields a document kubelet and kubectl accept.
Extra fields are allowed so that admin kubeconfigs using credentials this
module does not model (client certificates, exec plugins) still validate.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class Cluster(BaseModel):
    """Connection details of a cluster entry."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    server: str = Field(..., description="API server URL")
    certificate_authority_data: str | None = Field(
        None,
        alias="certificate-authority-data",
        description="Base64 encoded PEM CA bundle",
    )


class NamedCluster(BaseModel):
    model_config = {"populate_by_name": True}

    name: str
    cluster: Cluster


class AuthInfo(BaseModel):
    """Credentials of a user entry."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    token: str | None = Field(None, description="Bearer token")


class NamedAuthInfo(BaseModel):
    model_config = {"populate_by_name": True}

    name: str
    auth_info: AuthInfo = Field(..., alias="user")


class Context(BaseModel):
    """Links a cluster entry to a user entry."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    cluster: str
    auth_info: str = Field(..., alias="user")
    namespace: str | None = None


class NamedContext(BaseModel):
    model_config = {"populate_by_name": True}

    name: str
    context: Context


class KubeConfig(BaseModel):
    """
    A kubeconfig document.

    The validator enforces that the current context, when set, refers to a
    context that exists and that every context refers to existing cluster
    and user entries.
    """

    model_config = {"populate_by_name": True, "extra": "allow"}

    api_version: str = Field("v1", alias="apiVersion")
    kind: str = Field("Config")
    preferences: dict[str, Any] = Field(default_factory=dict)
    clusters: list[NamedCluster] = Field(default_factory=list)
    auth_infos: list[NamedAuthInfo] = Field(default_factory=list, alias="users")
    contexts: list[NamedContext] = Field(default_factory=list)
    current_context: str = Field("", alias="current-context")

    @model_validator(mode="after")
    def validate_references(self) -> "KubeConfig":
        cluster_names = {c.name for c in self.clusters}
        user_names = {u.name for u in self.auth_infos}
        context_names = set()
        for named in self.contexts:
            if named.context.cluster not in cluster_names:
                raise ValueError(
                    f"context '{named.name}' references unknown cluster "
                    f"'{named.context.cluster}'"
                )
            if named.context.auth_info not in user_names:
                raise ValueError(
                    f"context '{named.name}' references unknown user "
                    f"'{named.context.auth_info}'"
                )
            context_names.add(named.name)
        if self.current_context and self.current_context not in context_names:
            raise ValueError(
                f"current-context '{self.current_context}' does not exist"
            )
        return self
