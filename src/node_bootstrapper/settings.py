"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    operator_name: str = Field(
        default="node-bootstrapper",
        description="Name of the operator deployment, used for peering",
        validation_alias="OPERATOR_NAME",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )

    # Namespace watching
    namespaces: str = Field(
        default="",
        validation_alias="NODE_BOOTSTRAPPER_NAMESPACES",
        description="Comma-separated list of namespaces to watch (empty = all namespaces)",
    )

    # Metrics and observability
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    # Watched resource
    hcp_api_version: str = Field(
        default="v1alpha1",
        validation_alias="HCP_API_VERSION",
        description="API version of hostedcontrolplanes.hypershift.openshift.io",
    )

    # Bootstrap chain
    bootstrap_kubeconfig_key: str = Field(
        default="kubeconfig",
        validation_alias="BOOTSTRAP_KUBECONFIG_KEY",
        description="Data key of the bootstrap kubeconfig secret",
    )
    reconcile_interval_seconds: float = Field(
        default=300.0,
        validation_alias="RECONCILE_INTERVAL_SECONDS",
        description="Interval between periodic re-assertions of the bootstrap chain",
        gt=0,
    )
    not_ready_retry_delay_seconds: int = Field(
        default=15,
        validation_alias="NOT_READY_RETRY_DELAY_SECONDS",
        description="Retry delay when the hosted control plane or token is not ready yet",
        ge=1,
    )
    upsert_conflict_retries: int = Field(
        default=5,
        validation_alias="UPSERT_CONFLICT_RETRIES",
        description="Re-fetch attempts after a resourceVersion conflict during an upsert",
        ge=0,
    )

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Parse watched namespaces from comma-separated string.

        Returns:
            List of namespace names, or None to watch all namespaces
        """
        if self.namespaces:
            return [ns.strip() for ns in self.namespaces.split(",") if ns.strip()]
        return None


# Global settings instance - initialized once at module import
settings = Settings()
