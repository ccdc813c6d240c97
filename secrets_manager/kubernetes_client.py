# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Target store for materialized secrets."""

import base64
import binascii
from abc import ABC, abstractmethod

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from sm_logging import Logger

from .errors import SecretNotFoundError, TargetReadError, TargetWriteError
from .models import Secret


class TargetStoreClient(ABC):
    """Where materialized secrets are read from and written to."""

    @abstractmethod
    def read_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        """Read the data of a secret.

        Raises:
            SecretNotFoundError: If the secret does not exist
            TargetReadError: If the read fails for any other reason
        """
        pass

    @abstractmethod
    def upsert_secret(self, secret: Secret) -> None:
        """Create the secret, or replace it if it already exists.

        Raises:
            TargetWriteError: If the write fails
        """
        pass


class KubernetesSecretStore(TargetStoreClient):
    """TargetStoreClient backed by the Kubernetes core/v1 Secret API.

    API errors and transport failures (connection refused, exhausted
    retries, TLS errors) both surface as ``TargetStoreError`` subclasses.
    """

    def __init__(self, core_api: client.CoreV1Api, logger: Logger | None = None):
        self.core_api = core_api
        self.logger = logger

    def read_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        try:
            secret = self.core_api.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise SecretNotFoundError(f"Secret {namespace}/{name} not found") from e
            raise TargetReadError(f"Failed to read secret {namespace}/{name}: {e.reason}") from e
        except (HTTPError, OSError) as e:
            raise TargetReadError(f"Failed to reach API server reading secret {namespace}/{name}: {e}") from e

        try:
            return {key: base64.b64decode(value) for key, value in (secret.data or {}).items()}
        except (binascii.Error, ValueError) as e:
            raise TargetReadError(f"Secret {namespace}/{name} has malformed data: {e}") from e

    def upsert_secret(self, secret: Secret) -> None:
        body = self._to_body(secret)
        try:
            self.core_api.replace_namespaced_secret(
                name=secret.name, namespace=secret.namespace, body=body
            )
            return
        except ApiException as e:
            if e.status != 404:
                raise TargetWriteError(
                    f"Failed to update secret {secret.namespace}/{secret.name}: {e.reason}"
                ) from e
        except (HTTPError, OSError) as e:
            raise TargetWriteError(
                f"Failed to reach API server updating secret {secret.namespace}/{secret.name}: {e}"
            ) from e

        if self.logger:
            self.logger.debug("Secret does not exist, creating it", namespace=secret.namespace, name=secret.name)

        try:
            self.core_api.create_namespaced_secret(namespace=secret.namespace, body=body)
        except ApiException as e:
            raise TargetWriteError(
                f"Failed to create secret {secret.namespace}/{secret.name}: {e.reason}"
            ) from e
        except (HTTPError, OSError) as e:
            raise TargetWriteError(
                f"Failed to reach API server creating secret {secret.namespace}/{secret.name}: {e}"
            ) from e

    @staticmethod
    def _to_body(secret: Secret) -> client.V1Secret:
        return client.V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=client.V1ObjectMeta(
                name=secret.name,
                namespace=secret.namespace,
                labels=dict(secret.labels),
            ),
            type=secret.type,
            data={key: base64.b64encode(value).decode("ascii") for key, value in secret.data.items()},
        )
