"""Shared fixtures for node bootstrapper unit tests."""

from collections.abc import Callable
from typing import Any

import pytest

from node_bootstrapper.utils.kubernetes import ClusterClient
from tests.unit.fake_cluster import FakeCluster, admin_kubeconfig_secret, cluster_client


@pytest.fixture
def management_api() -> FakeCluster:
    """Management cluster holding the admin kubeconfig secret."""
    fake = FakeCluster()
    fake.put("Secret", admin_kubeconfig_secret())
    return fake


@pytest.fixture
def hosted_api() -> FakeCluster:
    """Hosted cluster whose token controller issues tokens immediately."""
    return FakeCluster(issue_tokens=True)


@pytest.fixture
def hosted_factory(hosted_api) -> Callable[[dict[str, Any]], ClusterClient]:
    """Hosted client factory recording the kubeconfigs it was given."""
    received: list[dict[str, Any]] = []

    def factory(kubeconfig: dict[str, Any]) -> ClusterClient:
        received.append(kubeconfig)
        return cluster_client(hosted_api)

    factory.received = received  # type: ignore[attr-defined]
    return factory
