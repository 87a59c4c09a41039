"""Unit tests for the operator error hierarchy."""

import kopf
import pytest

from node_bootstrapper.errors import (
    CredentialsNotAvailableError,
    EndpointNotAvailableError,
    KubeconfigError,
    KubeconfigSerializationError,
    KubernetesAPIError,
    OperatorError,
    PreconditionNotMetError,
    TemporaryError,
    TokenNotIssuedError,
    ValidationError,
)


class TestKopfConversion:
    def test_retryable_becomes_temporary(self):
        error = TemporaryError("later", delay=12)
        kopf_error = error.as_kopf_error()
        assert isinstance(kopf_error, kopf.TemporaryError)
        assert kopf_error.delay == 12

    def test_non_retryable_becomes_permanent(self):
        error = ValidationError("bad", field="status")
        assert isinstance(error.as_kopf_error(), kopf.PermanentError)

    def test_user_action_in_message(self):
        error = OperatorError("broken", category="x", user_action="fix it")
        assert str(error) == "broken\nAction required: fix it"


class TestPreconditions:
    @pytest.mark.parametrize(
        "error_class",
        [CredentialsNotAvailableError, EndpointNotAvailableError, TokenNotIssuedError],
    )
    def test_not_ready_errors_are_retryable(self, error_class):
        error = error_class("not yet", delay=4)
        assert isinstance(error, PreconditionNotMetError)
        assert error.retryable is True
        assert error.delay == 4

    def test_default_delay(self):
        assert TokenNotIssuedError("not yet").delay == 15


class TestKubernetesAPIError:
    @pytest.mark.parametrize("reason", ["Forbidden", "Unauthorized", "Invalid"])
    def test_non_retryable_reasons(self, reason):
        assert KubernetesAPIError("x", reason=reason).retryable is False

    def test_reason_in_message(self):
        error = KubernetesAPIError("failed to get Secret a/b", reason="Not Found")
        assert "failed to get Secret a/b (reason: Not Found)" in str(error)
        assert error.retryable is True


class TestKubeconfigErrors:
    def test_kubeconfig_error_keeps_cause(self):
        cause = ValueError("bad")
        error = KubeconfigError("could not load", cause=cause)
        assert error.cause is cause
        assert error.retryable is True

    def test_serialization_error_is_permanent(self):
        error = KubeconfigSerializationError("bad token")
        assert error.retryable is False
        assert isinstance(error.as_kopf_error(), kopf.PermanentError)
