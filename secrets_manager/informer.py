# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Watch-fed local cache of SecretDefinition custom objects."""

import random
import threading
import time
from typing import Any, Callable

from kubernetes import client, watch
from kubernetes.client.rest import ApiException

from sm_logging import Logger

from .errors import InvalidDefinitionError
from .models import SecretDefinition, meta_namespace_key

DEFAULT_GROUP = "secretsmanager.tuenti.io"
DEFAULT_VERSION = "v1alpha1"
PLURAL = "secretdefinitions"

AddHandler = Callable[[SecretDefinition], None]
UpdateHandler = Callable[[SecretDefinition, SecretDefinition], None]
DeleteHandler = Callable[[SecretDefinition], None]


class DefinitionCache:
    """Thread-safe store of SecretDefinitions keyed by ``namespace/name``."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: dict[str, SecretDefinition] = {}

    def get(self, namespace: str, name: str) -> SecretDefinition | None:
        return self.get_by_key(meta_namespace_key(namespace, name))

    def get_by_key(self, key: str) -> SecretDefinition | None:
        with self._lock:
            return self._items.get(key)

    def list_keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def list(self) -> list[SecretDefinition]:
        with self._lock:
            return list(self._items.values())

    def upsert(self, definition: SecretDefinition) -> SecretDefinition | None:
        """Store ``definition`` and return the object it replaced, if any."""
        with self._lock:
            old = self._items.get(definition.key)
            self._items[definition.key] = definition
            return old

    def delete(self, key: str) -> SecretDefinition | None:
        with self._lock:
            return self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SecretDefinitionInformer:
    """List-then-watch SecretDefinitions into a DefinitionCache.

    Handlers registered with :meth:`add_event_handler` receive typed
    ``SecretDefinition`` objects. Every ``resync_period`` seconds the update
    handlers are fired again for each cached object so consumers converge
    even if they missed a change.

    ``410 Gone`` triggers a fresh list; ``401``/``403`` stop the informer,
    since they mean missing RBAC rather than a transient failure. A stopped
    informer reports :meth:`has_failed` so its consumers can exit instead of
    waiting on a cache that will never change again.
    """

    def __init__(
        self,
        custom_api: client.CustomObjectsApi,
        logger: Logger,
        group: str = DEFAULT_GROUP,
        version: str = DEFAULT_VERSION,
        namespace: str = "",
        resync_period: float = 30.0,
        watch_timeout_seconds: int = 300,
    ):
        self.custom_api = custom_api
        self.logger = logger
        self.group = group
        self.version = version
        self.namespace = namespace
        self.resync_period = resync_period
        self.watch_timeout_seconds = watch_timeout_seconds

        self.cache = DefinitionCache()
        self._add_handlers: list[AddHandler] = []
        self._update_handlers: list[UpdateHandler] = []
        self._delete_handlers: list[DeleteHandler] = []

        self._synced = threading.Event()
        self._failed = threading.Event()
        self._external_stop = threading.Event()
        self._active_watcher: watch.Watch | None = None
        self._watcher_lock = threading.Lock()
        self._next_resync = 0.0
        self._thread: threading.Thread | None = None

    def add_event_handler(
        self,
        on_add: AddHandler | None = None,
        on_update: UpdateHandler | None = None,
        on_delete: DeleteHandler | None = None,
    ) -> None:
        if on_add:
            self._add_handlers.append(on_add)
        if on_update:
            self._update_handlers.append(on_update)
        if on_delete:
            self._delete_handlers.append(on_delete)

    def has_synced(self) -> bool:
        """True once the initial listing has populated the cache."""
        return self._synced.is_set()

    def has_failed(self) -> bool:
        """True once the informer gave up for good (access denied)."""
        return self._failed.is_set()

    def wait_for_cache_sync(self, stop_event: threading.Event, poll_interval: float = 0.1) -> bool:
        """Block until the cache has synced, the informer failed or ``stop_event`` is set.

        Returns:
            True if the cache synced, False otherwise
        """
        while not stop_event.is_set() and not self._failed.is_set():
            if self._synced.wait(timeout=poll_interval):
                return True
        return self._synced.is_set()

    def start(self, stop_event: threading.Event) -> threading.Thread:
        """Run the informer in a background thread."""
        self._thread = threading.Thread(
            target=self.run, args=(stop_event,), name="secretdefinition-informer", daemon=True
        )
        self._thread.start()
        return self._thread

    def request_stop(self) -> None:
        """Stop the informer and interrupt any open watch stream."""
        self._external_stop.set()
        with self._watcher_lock:
            active_watcher = self._active_watcher
        if active_watcher is not None:
            active_watcher.stop()

    def _should_stop(self, stop_event: threading.Event) -> bool:
        return stop_event.is_set() or self._external_stop.is_set()

    def run(self, stop_event: threading.Event) -> None:
        """List, then watch until ``stop_event`` is set."""
        resource_version = self._initial_list(stop_event)
        if resource_version is None:
            return

        backoff_seconds = 1
        while not self._should_stop(stop_event):
            self._maybe_resync()
            watcher = watch.Watch()
            with self._watcher_lock:
                self._active_watcher = watcher
            try:
                for event in watcher.stream(
                    self._list_function(),
                    resource_version=resource_version,
                    timeout_seconds=self._watch_timeout(),
                    **self._list_kwargs(),
                ):
                    if self._should_stop(stop_event):
                        break
                    resource_version = self._handle_event(event) or resource_version
                    self._maybe_resync()
                backoff_seconds = 1
            except ApiException as e:
                if e.status == 410:
                    self.logger.warning("Watch resource version expired, re-listing")
                    try:
                        resource_version = self._relist()
                    except ApiException as relist_error:
                        if relist_error.status in (401, 403):
                            self._access_denied(relist_error.status)
                            return
                        self.logger.exception("Failed to re-list after 410", error=str(relist_error))
                        resource_version = ""
                    continue

                if e.status in (401, 403):
                    self._access_denied(e.status)
                    return

                self.logger.exception("Kubernetes API watch error", status=e.status, error=str(e))
                stop_event.wait(timeout=backoff_seconds * (0.5 + random.random()))
                backoff_seconds = min(backoff_seconds * 2, 30)
            except Exception as e:
                self.logger.exception("Unexpected watch error", error=str(e))
                stop_event.wait(timeout=backoff_seconds * (0.5 + random.random()))
                backoff_seconds = min(backoff_seconds * 2, 30)
            finally:
                watcher.stop()
                with self._watcher_lock:
                    if self._active_watcher is watcher:
                        self._active_watcher = None

    def _initial_list(self, stop_event: threading.Event) -> str | None:
        backoff_seconds = 1
        while not self._should_stop(stop_event):
            try:
                resource_version = self._relist()
                self._synced.set()
                self._next_resync = time.monotonic() + self.resync_period
                self.logger.info(
                    "SecretDefinition cache synced",
                    count=len(self.cache),
                    resource_version=resource_version,
                )
                return resource_version
            except ApiException as e:
                if e.status in (401, 403):
                    self._access_denied(e.status)
                    return None
                self.logger.exception("Initial SecretDefinition list failed", status=e.status, error=str(e))
            except Exception as e:
                self.logger.exception("Unexpected error during initial SecretDefinition list", error=str(e))

            stop_event.wait(timeout=backoff_seconds * (0.5 + random.random()))
            backoff_seconds = min(backoff_seconds * 2, 30)
        return None

    def _relist(self) -> str:
        """Replace the cache with a fresh listing, dispatching the differences."""
        response = self._list_function()(**self._list_kwargs())
        seen = set()
        for obj in response.get("items", []):
            definition = self._parse(obj)
            if definition is None:
                continue
            seen.add(definition.key)
            self._apply_upsert(definition)

        for key in self.cache.list_keys():
            if key not in seen:
                old = self.cache.delete(key)
                if old is not None:
                    self._dispatch_delete(old)

        return (response.get("metadata") or {}).get("resourceVersion", "")

    def _handle_event(self, event: dict[str, Any]) -> str | None:
        event_type = event.get("type", "")
        obj = event.get("object")

        if event_type == "ERROR":
            code = obj.get("code") if isinstance(obj, dict) else None
            raise ApiException(status=code or 500, reason=str(obj))

        if not isinstance(obj, dict):
            return None

        resource_version = (obj.get("metadata") or {}).get("resourceVersion")
        definition = self._parse(obj)
        if definition is None:
            return resource_version

        if event_type in ("ADDED", "MODIFIED"):
            self._apply_upsert(definition)
        elif event_type == "DELETED":
            old = self.cache.delete(definition.key)
            self._dispatch_delete(old or definition)
        return resource_version

    def _apply_upsert(self, definition: SecretDefinition) -> None:
        old = self.cache.upsert(definition)
        if old is None:
            self._dispatch_add(definition)
        else:
            self._dispatch_update(old, definition)

    def _maybe_resync(self) -> None:
        if self.resync_period <= 0 or time.monotonic() < self._next_resync:
            return
        self._next_resync = time.monotonic() + self.resync_period
        definitions = self.cache.list()
        self.logger.debug("Resyncing SecretDefinitions", count=len(definitions))
        for definition in definitions:
            self._dispatch_update(definition, definition)

    def _watch_timeout(self) -> int:
        if self.resync_period <= 0:
            return self.watch_timeout_seconds
        remaining = int(self._next_resync - time.monotonic()) + 1
        return max(1, min(self.watch_timeout_seconds, remaining))

    def _parse(self, obj: dict[str, Any]) -> SecretDefinition | None:
        try:
            return SecretDefinition.from_dict(obj)
        except InvalidDefinitionError as e:
            metadata = obj.get("metadata") or {}
            self.logger.warning(
                "Ignoring invalid SecretDefinition",
                namespace=metadata.get("namespace"),
                name=metadata.get("name"),
                error=str(e),
            )
            return None

    def _list_function(self):
        if self.namespace:
            return self.custom_api.list_namespaced_custom_object
        return self.custom_api.list_cluster_custom_object

    def _list_kwargs(self) -> dict[str, str]:
        kwargs = {"group": self.group, "version": self.version, "plural": PLURAL}
        if self.namespace:
            kwargs["namespace"] = self.namespace
        return kwargs

    def _access_denied(self, status: int) -> None:
        self.logger.error(
            "Kubernetes API access denied for SecretDefinitions. "
            "Check controller RBAC and service account permissions.",
            status=status,
        )
        self._failed.set()

    def _dispatch_add(self, definition: SecretDefinition) -> None:
        for handler in self._add_handlers:
            self._call(handler, definition)

    def _dispatch_update(self, old: SecretDefinition, new: SecretDefinition) -> None:
        for handler in self._update_handlers:
            self._call(handler, old, new)

    def _dispatch_delete(self, definition: SecretDefinition) -> None:
        for handler in self._delete_handlers:
            self._call(handler, definition)

    def _call(self, handler: Callable, *args: SecretDefinition) -> None:
        try:
            handler(*args)
        except Exception as e:
            self.logger.exception("SecretDefinition event handler failed", error=str(e))
