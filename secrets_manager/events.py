# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Kubernetes Event recorder for SecretDefinitions."""

from datetime import datetime, timezone

from kubernetes import client
from kubernetes.client.rest import ApiException

from sm_logging import Logger

from .models import SecretDefinition

EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

REASON_SYNCED = "Synced"
MESSAGE_SYNCED = "SecretDefinition synced successfully"

COMPONENT = "secrets-manager"


class EventRecorder:
    """Creates core/v1 Events referencing SecretDefinitions.

    Events are best effort: API failures are logged and never raised.
    """

    def __init__(
        self,
        core_api: client.CoreV1Api,
        logger: Logger,
        api_version: str,
        component: str = COMPONENT,
    ):
        self.core_api = core_api
        self.logger = logger
        self.api_version = api_version
        self.component = component

    def event(self, definition: SecretDefinition, event_type: str, reason: str, message: str) -> None:
        namespace = definition.namespace or "default"
        now = datetime.now(timezone.utc)
        body = client.CoreV1Event(
            metadata=client.V1ObjectMeta(
                name=f"{definition.name}.{int(now.timestamp() * 1e9):x}",
                namespace=namespace,
            ),
            involved_object=client.V1ObjectReference(
                api_version=self.api_version,
                kind="SecretDefinition",
                name=definition.name,
                namespace=definition.namespace or None,
                uid=definition.uid or None,
                resource_version=definition.resource_version or None,
            ),
            type=event_type,
            reason=reason,
            message=message,
            source=client.V1EventSource(component=self.component),
            first_timestamp=now,
            last_timestamp=now,
            count=1,
        )
        try:
            self.core_api.create_namespaced_event(namespace=namespace, body=body)
        except ApiException as e:
            self.logger.warning(
                "Unable to record event",
                namespace=definition.namespace,
                name=definition.name,
                reason=reason,
                error=str(e.reason),
            )
