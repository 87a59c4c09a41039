"""Unit tests for kubeconfig loading and bootstrap kubeconfig assembly."""

import base64

import pytest
import yaml
from kubernetes import client

from node_bootstrapper.errors import KubeconfigError, KubeconfigSerializationError
from node_bootstrapper.utils.kubeconfig import (
    assemble_kubeconfig,
    kubeconfig_from_token_secret,
    load_kubeconfig,
    token_secret_is_populated,
)
from tests.unit.fake_cluster import admin_kubeconfig_document, b64


def token_secret(data):
    return client.V1Secret(
        metadata=client.V1ObjectMeta(name="node-bootstrapper-token", namespace="ns"),
        data=data,
    )


class TestAssembleKubeconfig:
    def test_document_structure(self):
        document, ca = assemble_kubeconfig(
            "https://api.example.com:6443", b"CAFE", b"tok-123"
        )

        assert ca == b"CAFE"
        parsed = yaml.safe_load(document)
        assert parsed == {
            "apiVersion": "v1",
            "kind": "Config",
            "preferences": {},
            "clusters": [
                {
                    "name": "local",
                    "cluster": {
                        "server": "https://api.example.com:6443",
                        "certificate-authority-data": b64(b"CAFE"),
                    },
                }
            ],
            "users": [{"name": "kubelet", "user": {"token": "tok-123"}}],
            "contexts": [
                {"name": "kubelet", "context": {"cluster": "local", "user": "kubelet"}}
            ],
            "current-context": "kubelet",
        }

    def test_deterministic(self):
        first = assemble_kubeconfig("https://a:1", b"ca", b"t")
        second = assemble_kubeconfig("https://a:1", b"ca", b"t")
        assert first == second

    def test_only_server_differs(self):
        first, _ = assemble_kubeconfig("https://a.example.com:6443", b"ca", b"t")
        second, _ = assemble_kubeconfig("https://b.example.com:443", b"ca", b"t")

        changed = [
            (old, new)
            for old, new in zip(
                first.decode().splitlines(), second.decode().splitlines(), strict=True
            )
            if old != new
        ]
        assert len(changed) == 1
        assert "server: https://a.example.com:6443" in changed[0][0]
        assert "server: https://b.example.com:443" in changed[0][1]

    def test_round_trips_through_loader(self):
        document, _ = assemble_kubeconfig("https://a:1", b"ca", b"t")
        assert load_kubeconfig(document)["current-context"] == "kubelet"

    def test_token_must_be_text(self):
        with pytest.raises(KubeconfigSerializationError):
            assemble_kubeconfig("https://a:1", b"ca", b"\xff\xfe")


class TestKubeconfigFromTokenSecret:
    def test_decodes_secret_data(self):
        secret = token_secret({"ca.crt": b64(b"CAFE"), "token": b64(b"tok-123")})

        document, ca = kubeconfig_from_token_secret(secret, "https://h:6443")

        assert ca == b"CAFE"
        parsed = yaml.safe_load(document)
        assert parsed["users"][0]["user"]["token"] == "tok-123"
        assert base64.b64decode(
            parsed["clusters"][0]["cluster"]["certificate-authority-data"]
        ) == b"CAFE"

    def test_invalid_base64(self):
        secret = token_secret({"ca.crt": "***", "token": b64(b"t")})

        with pytest.raises(KubeconfigSerializationError) as exc_info:
            kubeconfig_from_token_secret(secret, "https://h:6443")

        assert "ca.crt" in str(exc_info.value)

    @pytest.mark.parametrize(
        "data, populated",
        [
            (None, False),
            ({}, False),
            ({"ca.crt": b64(b"ca")}, False),
            ({"token": b64(b"t")}, False),
            ({"ca.crt": "", "token": b64(b"t")}, False),
            ({"ca.crt": b64(b"ca"), "token": b64(b"t")}, True),
        ],
    )
    def test_token_secret_is_populated(self, data, populated):
        assert token_secret_is_populated(token_secret(data)) is populated


class TestLoadKubeconfig:
    def test_valid_admin_kubeconfig(self):
        parsed = load_kubeconfig(admin_kubeconfig_document())
        assert parsed["users"][0]["user"]["client-key-data"] == b64(b"KEY")

    def test_json_is_accepted(self):
        raw = (
            b'{"clusters": [{"name": "c", "cluster": {"server": "https://x"}}],'
            b' "users": [{"name": "u", "user": {"token": "t"}}],'
            b' "contexts": [{"name": "x", "context": {"cluster": "c", "user": "u"}}],'
            b' "current-context": "x"}'
        )
        assert load_kubeconfig(raw)["current-context"] == "x"

    @pytest.mark.parametrize(
        "raw, message",
        [
            (b"a: [", "not valid YAML"),
            (b"just a string", "must be a mapping"),
            (b"current-context: missing", "does not exist"),
            (
                b"contexts:\n- name: x\n  context: {cluster: nope, user: u}\n",
                "unknown cluster",
            ),
        ],
    )
    def test_invalid(self, raw, message):
        with pytest.raises(KubeconfigError) as exc_info:
            load_kubeconfig(raw)
        assert message in str(exc_info.value)
