"""
Unit tests for MetricsCollector methods in observability/metrics.py.

Tests verify the collector calls the right Prometheus metric objects with
the right label values.
"""

from unittest.mock import patch

import pytest

from node_bootstrapper.errors import TemporaryError
from node_bootstrapper.observability.metrics import MetricsCollector


@pytest.fixture
def collector():
    return MetricsCollector()


class TestTrackReconciliation:
    @pytest.mark.asyncio
    @patch("node_bootstrapper.observability.metrics.RECONCILIATION_DURATION")
    @patch("node_bootstrapper.observability.metrics.RECONCILIATION_TOTAL")
    async def test_success(self, mock_total, mock_duration, collector):
        async with collector.track_reconciliation("hostedcontrolplane", "ns", "hcp"):
            pass

        mock_total.labels.assert_called_with(
            resource_type="hostedcontrolplane", namespace="ns", name="hcp", result="success"
        )
        mock_total.labels().inc.assert_called_once()
        mock_duration.labels.assert_called_with(
            resource_type="hostedcontrolplane", namespace="ns", operation="reconcile"
        )

    @pytest.mark.asyncio
    @patch("node_bootstrapper.observability.metrics.RECONCILIATION_ERRORS")
    @patch("node_bootstrapper.observability.metrics.RECONCILIATION_TOTAL")
    async def test_error(self, mock_total, mock_errors, collector):
        with pytest.raises(TemporaryError):
            async with collector.track_reconciliation("hostedcontrolplane", "ns", "hcp"):
                raise TemporaryError("later")

        mock_errors.labels.assert_called_with(
            resource_type="hostedcontrolplane",
            namespace="ns",
            error_type="TemporaryError",
            retryable="true",
        )
        mock_total.labels.assert_called_with(
            resource_type="hostedcontrolplane", namespace="ns", name="hcp", result="error"
        )


class TestResourceOperations:
    @patch("node_bootstrapper.observability.metrics.RESOURCE_OPERATIONS")
    def test_record_resource_operation(self, mock_ops, collector):
        collector.record_resource_operation("ClusterRoleBinding", "updated")
        mock_ops.labels.assert_called_with(resource="ClusterRoleBinding", result="updated")
        mock_ops.labels().inc.assert_called_once()
