# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Queue-driven controller for SecretDefinitions."""

import threading
import time
from typing import Any

from sm_logging import Logger
from sm_metrics import MetricsCollector, NoOpMetricsCollector

from .errors import CacheSyncError
from .events import EventRecorder
from .informer import SecretDefinitionInformer
from .kubernetes_client import TargetStoreClient
from .models import SecretDefinition
from .reconciler import Reconciler
from .synchronizer import SecretSynchronizer
from .workqueue import ItemExponentialFailureRateLimiter, RateLimitingQueue

MAX_RETRIES = 15
INFORMER_CHECK_INTERVAL = 1.0

DROPPED_METRIC = "secret_sync_dropped_count"
RECONCILE_DURATION_METRIC = "reconcile_duration_seconds"


class Controller:
    """Turns SecretDefinition notifications into rate-limited reconciliations.

    Informer handlers only enqueue keys; workers pull keys from one shared
    queue and reconcile them. A failed key is re-queued with exponential
    backoff until ``max_retries`` is exhausted, then dropped.
    """

    def __init__(
        self,
        target_store: TargetStoreClient,
        definition_client: Any,
        informer: SecretDefinitionInformer,
        synchronizer: SecretSynchronizer,
        logger: Logger,
        metrics: MetricsCollector | None = None,
        recorder: EventRecorder | None = None,
        rate_limiter: ItemExponentialFailureRateLimiter | None = None,
        max_retries: int = MAX_RETRIES,
    ):
        """Initialize the controller and register informer handlers.

        ``target_store`` and ``definition_client`` are only held so callers
        can reach the clients the controller was wired with; reads and
        writes go through ``synchronizer`` and ``informer``.

        Args:
            target_store: Client for materialized secrets
            definition_client: Client for SecretDefinition objects
            informer: Local cache of SecretDefinitions
            synchronizer: Applies one definition to its namespaces
            logger: Logger instance
            metrics: Metrics collector (defaults to no-op)
            recorder: Optional Kubernetes event recorder
            rate_limiter: Per-key backoff (defaults to 5ms doubling, capped)
            max_retries: Failed reconciliations allowed before a key is dropped
        """
        self.target_store = target_store
        self.definition_client = definition_client
        self.informer = informer
        self.synchronizer = synchronizer
        self.logger = logger
        self.metrics = metrics or NoOpMetricsCollector()
        self.recorder = recorder
        self.max_retries = max_retries

        self.queue = RateLimitingQueue(rate_limiter=rate_limiter)
        self.reconciler = Reconciler(
            cache=informer.cache,
            synchronizer=synchronizer,
            logger=logger,
            recorder=recorder,
        )

        informer.add_event_handler(
            on_add=self.enqueue,
            on_update=lambda old, new: self.enqueue(new),
            on_delete=self.enqueue,
        )

    def enqueue(self, obj: SecretDefinition) -> None:
        """Queue the reconciliation key of ``obj``."""
        key = getattr(obj, "key", None)
        if not isinstance(key, str) or not key:
            self.logger.error("Unable to compute key for object", object=repr(obj))
            return
        self.queue.add(key)

    def run(
        self,
        worker_count: int,
        stop_event: threading.Event,
        informer_check_interval: float = INFORMER_CHECK_INTERVAL,
    ) -> None:
        """Run ``worker_count`` workers until ``stop_event`` is set.

        Raises:
            CacheSyncError: If the informer cache never synced, or the informer
                stopped for good while the workers were running
        """
        self.logger.info("Starting SecretDefinition controller")

        self.logger.info("Waiting for informer caches to sync")
        if not self.informer.wait_for_cache_sync(stop_event):
            self.queue.shut_down()
            if self.informer.has_failed():
                raise CacheSyncError("informer stopped before caches synced")
            raise CacheSyncError("failed to wait for caches to sync")

        self.logger.info("Starting workers", worker_count=worker_count)
        workers = []
        for index in range(worker_count):
            worker = threading.Thread(target=self._run_worker, name=f"worker-{index}", daemon=True)
            worker.start()
            workers.append(worker)
        self.logger.info("Started workers")

        informer_failed = False
        while not stop_event.wait(timeout=informer_check_interval):
            if self.informer.has_failed():
                self.logger.error("SecretDefinition informer stopped, shutting down controller")
                informer_failed = True
                break

        self.logger.info("Shutting down workers")
        self.queue.shut_down()
        for worker in workers:
            worker.join()
        self.logger.info("Workers stopped")

        if informer_failed:
            raise CacheSyncError("informer stopped, SecretDefinition cache is no longer updated")

    def _run_worker(self) -> None:
        while self.process_next_work_item():
            pass

    def process_next_work_item(self) -> bool:
        """Reconcile one key from the queue.

        Returns:
            False once the queue has shut down, True otherwise
        """
        key, shutdown = self.queue.get()
        if shutdown:
            return False

        try:
            self._reconcile(key)
        finally:
            self.queue.done(key)
        return True

    def _reconcile(self, key: str) -> None:
        start_time = time.monotonic()
        try:
            self.reconciler.reconcile(key)
        except Exception as e:
            self._handle_error(key, e)
        else:
            self.queue.forget(key)
            self.logger.debug("Successfully synced", key=key)
        finally:
            self.metrics.observe(RECONCILE_DURATION_METRIC, time.monotonic() - start_time)

    def _handle_error(self, key: str, error: Exception) -> None:
        requeues = self.queue.num_requeues(key)
        if requeues < self.max_retries:
            self.logger.error(
                "Error syncing SecretDefinition, retrying",
                key=key,
                retries=requeues,
                error=str(error),
            )
            self.queue.add_rate_limited(key)
            return

        self.queue.forget(key)
        self.logger.error(
            "Dropping SecretDefinition out of the queue",
            key=key,
            retries=requeues,
            error=str(error),
        )
        self.metrics.increment(DROPPED_METRIC, tags={"key": key})
