# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Tests for the SecretDefinition data model."""

from datetime import datetime, timezone

import pytest

from secrets_manager.errors import InvalidDefinitionError
from secrets_manager.models import (
    DatasourceRef,
    Secret,
    SecretDefinition,
    format_last_update,
    meta_namespace_key,
)


def custom_object(**spec_overrides):
    spec = {
        "name": "test-secret",
        "namespaces": ["default", "team-a"],
        "data": {
            "password": {"path": "secret/db", "key": "password", "encoding": "base64"},
            "user": {"path": "secret/db", "key": "user"},
        },
    }
    spec.update(spec_overrides)
    return {
        "apiVersion": "secretsmanager.tuenti.io/v1alpha1",
        "kind": "SecretDefinition",
        "metadata": {"name": "db", "namespace": "default", "uid": "123", "resourceVersion": "7"},
        "spec": spec,
    }


class TestSecretDefinition:
    def test_from_dict(self):
        definition = SecretDefinition.from_dict(custom_object())

        assert definition.key == "default/db"
        assert definition.uid == "123"
        assert definition.resource_version == "7"
        assert definition.spec.name == "test-secret"
        assert definition.spec.namespaces == ["default", "team-a"]
        assert definition.spec.type == "Opaque"
        assert definition.spec.data["password"] == DatasourceRef("secret/db", "password", "base64")
        assert definition.spec.data["user"].encoding == ""
        assert definition.synced is False

    def test_explicit_type(self):
        definition = SecretDefinition.from_dict(custom_object(type="kubernetes.io/tls"))

        assert definition.spec.type == "kubernetes.io/tls"

    def test_missing_namespaces_is_empty(self):
        obj = custom_object()
        del obj["spec"]["namespaces"]

        assert SecretDefinition.from_dict(obj).spec.namespaces == []

    def test_to_dict_round_trips_spec(self):
        obj = custom_object()
        definition = SecretDefinition.from_dict(obj)

        again = SecretDefinition.from_dict(definition.to_dict())

        assert again == definition

    @pytest.mark.parametrize(
        "obj",
        [
            None,
            {"metadata": {}, "spec": {"name": "x"}},
            {"metadata": {"name": "db"}, "spec": "not-a-mapping"},
            {"metadata": {"name": "db"}, "spec": {"name": "x", "namespaces": "default"}},
            {"metadata": {"name": "db"}, "spec": {"name": "x", "data": {"k": {"key": "k"}}}},
            {"metadata": {"name": "db"}, "spec": {"name": "x", "data": {"k": {"path": "p"}}}},
            {"metadata": {"name": "db"}, "spec": {"namespaces": []}},
        ],
    )
    def test_malformed_objects(self, obj):
        with pytest.raises(InvalidDefinitionError):
            SecretDefinition.from_dict(obj)


class TestSecret:
    def test_managed_labels(self):
        moment = datetime(2024, 1, 15, 8, 30, 0, tzinfo=timezone.utc)

        secret = Secret.managed("db", "default", "Opaque", {"k": b"v"}, moment=moment)

        assert secret.labels == {"managedBy": "secrets-manager", "lastUpdate": "2024-01-15T08.30.00Z"}

    def test_last_update_is_label_safe(self):
        assert ":" not in format_last_update()


def test_meta_namespace_key():
    assert meta_namespace_key("default", "db") == "default/db"
    assert meta_namespace_key("", "db") == "db"
