# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Data model for SecretDefinitions and materialized Secrets."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .errors import InvalidDefinitionError

MANAGED_BY_LABEL = "managedBy"
LAST_UPDATE_LABEL = "lastUpdate"
MANAGED_BY_VALUE = "secrets-manager"
# Label values cannot contain ':'
LAST_UPDATE_FORMAT = "%Y-%m-%dT%H.%M.%SZ"

DEFAULT_SECRET_TYPE = "Opaque"

# entry key -> raw bytes
DesiredState = dict[str, bytes]
CurrentState = dict[str, bytes]


def format_last_update(moment: datetime | None = None) -> str:
    """Format a UTC timestamp as a label-safe ``lastUpdate`` value."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(LAST_UPDATE_FORMAT)


@dataclass(frozen=True)
class DatasourceRef:
    """Location of one value in the backend and how it is encoded."""
    path: str
    key: str
    encoding: str = ""

    @classmethod
    def from_dict(cls, data: Any, entry: str = "") -> "DatasourceRef":
        if not isinstance(data, dict):
            raise InvalidDefinitionError(f"datasource for entry '{entry}' must be a mapping")
        path = data.get("path")
        key = data.get("key")
        if not isinstance(path, str) or not path:
            raise InvalidDefinitionError(f"datasource for entry '{entry}' is missing 'path'")
        if not isinstance(key, str) or not key:
            raise InvalidDefinitionError(f"datasource for entry '{entry}' is missing 'key'")
        encoding = data.get("encoding") or ""
        if not isinstance(encoding, str):
            raise InvalidDefinitionError(f"datasource for entry '{entry}' has a non-string 'encoding'")
        return cls(path=path, key=key, encoding=encoding)

    def to_dict(self) -> dict[str, str]:
        data = {"path": self.path, "key": self.key}
        if self.encoding:
            data["encoding"] = self.encoding
        return data


@dataclass
class SecretDefinitionSpec:
    """What to materialize: target name, namespaces, type and entries."""
    name: str
    namespaces: list[str] = field(default_factory=list)
    type: str = DEFAULT_SECRET_TYPE
    data: dict[str, DatasourceRef] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "SecretDefinitionSpec":
        if not isinstance(data, dict):
            raise InvalidDefinitionError("spec must be a mapping")

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidDefinitionError("spec.name is required")

        namespaces = data.get("namespaces") or []
        if not isinstance(namespaces, list) or not all(isinstance(ns, str) for ns in namespaces):
            raise InvalidDefinitionError("spec.namespaces must be a list of strings")

        raw_entries = data.get("data") or {}
        if not isinstance(raw_entries, dict):
            raise InvalidDefinitionError("spec.data must be a mapping")

        return cls(
            name=name,
            namespaces=list(namespaces),
            type=data.get("type") or DEFAULT_SECRET_TYPE,
            data={entry: DatasourceRef.from_dict(ref, entry) for entry, ref in raw_entries.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespaces": list(self.namespaces),
            "type": self.type,
            "data": {entry: ref.to_dict() for entry, ref in self.data.items()},
        }


@dataclass
class SecretDefinition:
    """A SecretDefinition custom resource.

    ``status.synced`` is read from the cluster but never written back.
    """
    name: str
    spec: SecretDefinitionSpec
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    synced: bool = False

    @property
    def key(self) -> str:
        return meta_namespace_key(self.namespace, self.name)

    @classmethod
    def from_dict(cls, obj: Any) -> "SecretDefinition":
        """Build a SecretDefinition from a custom-objects API payload.

        Raises:
            InvalidDefinitionError: If the object is malformed
        """
        if not isinstance(obj, dict):
            raise InvalidDefinitionError("SecretDefinition must be a mapping")

        metadata = obj.get("metadata") or {}
        name = metadata.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidDefinitionError("metadata.name is required")

        status = obj.get("status") or {}
        return cls(
            name=name,
            namespace=metadata.get("namespace") or "",
            uid=metadata.get("uid") or "",
            resource_version=metadata.get("resourceVersion") or "",
            spec=SecretDefinitionSpec.from_dict(obj.get("spec")),
            synced=bool(status.get("synced", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        metadata = {"name": self.name}
        if self.namespace:
            metadata["namespace"] = self.namespace
        if self.uid:
            metadata["uid"] = self.uid
        if self.resource_version:
            metadata["resourceVersion"] = self.resource_version
        return {
            "metadata": metadata,
            "spec": self.spec.to_dict(),
            "status": {"synced": self.synced},
        }


@dataclass
class Secret:
    """A materialized Kubernetes Secret as written by the controller."""
    name: str
    namespace: str
    type: str
    data: dict[str, bytes]
    labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def managed(
        cls,
        name: str,
        namespace: str,
        secret_type: str,
        data: dict[str, bytes],
        moment: datetime | None = None,
    ) -> "Secret":
        """Build a Secret carrying the controller's ownership labels."""
        return cls(
            name=name,
            namespace=namespace,
            type=secret_type,
            data=dict(data),
            labels={
                MANAGED_BY_LABEL: MANAGED_BY_VALUE,
                LAST_UPDATE_LABEL: format_last_update(moment),
            },
        )


def meta_namespace_key(namespace: str, name: str) -> str:
    """Return ``namespace/name``, or ``name`` for cluster-scoped objects."""
    if namespace:
        return f"{namespace}/{name}"
    return name
