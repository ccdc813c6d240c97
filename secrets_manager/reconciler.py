# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Reconciles one SecretDefinition key."""

from sm_logging import Logger

from .errors import InvalidKeyError
from .events import EVENT_TYPE_NORMAL, MESSAGE_SYNCED, REASON_SYNCED, EventRecorder
from .informer import DefinitionCache
from .synchronizer import SecretSynchronizer


def split_meta_namespace_key(key: str) -> tuple[str, str]:
    """Split ``namespace/name`` (or a bare ``name``) into its parts.

    Raises:
        InvalidKeyError: If the key has more than one ``/`` or an empty name
    """
    parts = key.split("/")
    if len(parts) == 1:
        namespace, name = "", parts[0]
    elif len(parts) == 2:
        namespace, name = parts
    else:
        raise InvalidKeyError(f"unexpected key format: {key!r}")

    if not name:
        raise InvalidKeyError(f"unexpected key format: {key!r}")
    return namespace, name


class Reconciler:
    """Looks a key up in the local cache and synchronizes its definition."""

    def __init__(
        self,
        cache: DefinitionCache,
        synchronizer: SecretSynchronizer,
        logger: Logger,
        recorder: EventRecorder | None = None,
    ):
        self.cache = cache
        self.synchronizer = synchronizer
        self.logger = logger
        self.recorder = recorder

    def reconcile(self, key: str) -> None:
        """Bring the secrets of ``key`` in line with the backend.

        A key whose definition no longer exists is a successful no-op.

        Raises:
            InvalidKeyError: If the key is malformed
            BackendError: If the desired state could not be computed
        """
        namespace, name = split_meta_namespace_key(key)

        definition = self.cache.get(namespace, name)
        if definition is None:
            self.logger.info("SecretDefinition no longer exists", key=key)
            return

        self.synchronizer.sync_state(definition.spec)

        if self.recorder is not None:
            try:
                self.recorder.event(definition, EVENT_TYPE_NORMAL, REASON_SYNCED, MESSAGE_SYNCED)
            except Exception as e:
                self.logger.warning("Unable to record event", key=key, error=str(e))
