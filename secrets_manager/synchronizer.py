# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Synchronizes one SecretDefinition's desired state into its namespaces."""

from datetime import datetime, timezone

from sm_backend import BackendClient, BackendError, CodecRegistry, default_registry
from sm_logging import Logger
from sm_metrics import MetricsCollector, NoOpMetricsCollector

from .errors import SecretNotFoundError, TargetStoreError
from .kubernetes_client import TargetStoreClient
from .models import CurrentState, DesiredState, Secret, SecretDefinitionSpec

SYNC_ERRORS_METRIC = "secret_sync_errors_count"
LAST_UPDATED_METRIC = "secret_last_updated"


def states_equal(desired: DesiredState, current: CurrentState | None) -> bool:
    """Return True when both states hold the same keys with the same bytes.

    A missing secret (``None``) never equals a desired state, so a secret
    with no entries is still created.
    """
    if current is None:
        return False
    if desired.keys() != current.keys():
        return False
    return all(desired[key] == current[key] for key in desired)


class SecretSynchronizer:
    """Brings materialized secrets in line with the backend.

    Desired state is read from the backend on every call and never cached.
    A backend or decoding failure aborts the whole sync before any namespace
    is touched; a failure in one namespace is logged and counted but never
    stops the others and never propagates.
    """

    def __init__(
        self,
        backend: BackendClient,
        target_store: TargetStoreClient,
        logger: Logger,
        metrics: MetricsCollector | None = None,
        codecs: CodecRegistry | None = None,
    ):
        self.backend = backend
        self.target_store = target_store
        self.logger = logger
        self.metrics = metrics or NoOpMetricsCollector()
        self.codecs = codecs or default_registry

    def sync_state(self, spec: SecretDefinitionSpec) -> None:
        """Materialize ``spec`` into every namespace it lists.

        Raises:
            BackendError: If any value cannot be read or decoded
        """
        try:
            desired = self.get_desired_state(spec)
        except BackendError as e:
            self.logger.error(
                "Unable to get desired state for secret",
                name=spec.name,
                error=str(e),
            )
            for namespace in spec.namespaces:
                self._record_error(spec.name, namespace)
            raise

        for namespace in spec.namespaces:
            try:
                current = self.get_current_state(namespace, spec.name)
            except TargetStoreError as e:
                self.logger.error(
                    "Unable to get current state of secret",
                    namespace=namespace,
                    name=spec.name,
                    error=str(e),
                )
                self._record_error(spec.name, namespace)
                continue

            if states_equal(desired, current):
                self.logger.debug("Secret is up to date", namespace=namespace, name=spec.name)
                continue

            self.logger.info("Secret must be updated", namespace=namespace, name=spec.name)
            try:
                self.upsert_secret(spec.type, namespace, spec.name, desired)
            except TargetStoreError as e:
                self.logger.error(
                    "Unable to upsert secret",
                    namespace=namespace,
                    name=spec.name,
                    error=str(e),
                )
                self._record_error(spec.name, namespace)
                continue
            self.logger.info("Secret updated", namespace=namespace, name=spec.name)

    def get_desired_state(self, spec: SecretDefinitionSpec) -> DesiredState:
        """Read and decode every entry of ``spec`` from the backend."""
        desired: DesiredState = {}
        for entry, ref in spec.data.items():
            try:
                value = self.backend.read_secret(ref.path, ref.key)
            except BackendError as e:
                self.logger.error(
                    "Unable to read secret from backend",
                    path=ref.path,
                    key=ref.key,
                    error=str(e),
                )
                raise

            try:
                desired[entry] = self.codecs.decode(ref.encoding, value)
            except BackendError as e:
                self.logger.error(
                    "Unable to decode secret data",
                    path=ref.path,
                    key=ref.key,
                    encoding=ref.encoding,
                    error=str(e),
                )
                raise
        return desired

    def get_current_state(self, namespace: str, name: str) -> CurrentState | None:
        """Read the materialized secret, or None when it does not exist yet."""
        try:
            return self.target_store.read_secret(namespace, name)
        except SecretNotFoundError:
            self.logger.debug("Secret not found in namespace", namespace=namespace, name=name)
            return None

    def upsert_secret(self, secret_type: str, namespace: str, name: str, data: DesiredState) -> None:
        """Write ``data`` as a managed secret and record the write time."""
        now = datetime.now(timezone.utc)
        secret = Secret.managed(
            name=name,
            namespace=namespace,
            secret_type=secret_type,
            data=data,
            moment=now,
        )
        self.target_store.upsert_secret(secret)
        self.metrics.gauge(
            LAST_UPDATED_METRIC,
            float(int(now.timestamp())),
            tags={"secret_name": name, "namespace": namespace},
        )

    def _record_error(self, name: str, namespace: str) -> None:
        self.metrics.increment(
            SYNC_ERRORS_METRIC,
            tags={"secret_name": name, "namespace": namespace},
        )

