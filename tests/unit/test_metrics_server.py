"""
Unit tests for MetricsServer HTTP endpoints.

Uses ``aiohttp.test_utils`` to drive the server's aiohttp application
without binding the configured port.
"""

from unittest.mock import patch

import pytest
from aiohttp.test_utils import TestClient, TestServer

from node_bootstrapper.observability.metrics import MetricsServer, metrics_collector


@pytest.fixture
def metrics_server():
    """Create a fresh MetricsServer instance per test."""
    return MetricsServer(port=0)  # port doesn't matter for test_utils


@pytest.fixture
async def client(metrics_server):
    """Create an aiohttp TestClient from the MetricsServer app."""
    server = TestServer(metrics_server.app)
    async with TestClient(server) as cli:
        yield cli


class TestMetricsEndpoint:
    """Tests for ``GET /metrics``."""

    @pytest.mark.asyncio
    async def test_metrics_returns_200(self, client):
        metrics_collector.record_resource_operation("Secret", "created")

        resp = await client.get("/metrics")

        assert resp.status == 200
        assert resp.headers["Content-Type"].startswith("text/plain")
        body = await resp.text()
        assert 'node_bootstrapper_resource_operations_total{resource="Secret",result="created"}' in body

    @pytest.mark.asyncio
    async def test_metrics_error_returns_500(self, client):
        """When generate_latest raises, the handler returns 500."""
        with patch(
            "node_bootstrapper.observability.metrics.generate_latest",
            side_effect=RuntimeError("boom"),
        ):
            resp = await client.get("/metrics")
        assert resp.status == 500
        body = await resp.text()
        assert "RuntimeError" in body


class TestHealthzEndpoint:
    """Tests for ``GET /healthz``."""

    @pytest.mark.asyncio
    async def test_healthz_returns_200_ok(self, client):
        resp = await client.get("/healthz")
        assert resp.status == 200
        assert await resp.text() == "ok"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, metrics_server):
        await metrics_server.stop()
        assert metrics_server.runner is None
