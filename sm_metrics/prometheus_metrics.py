# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Prometheus metrics collector implementation."""

import logging
import threading

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from .base import MetricsCollector

logger = logging.getLogger(__name__)


class PrometheusMetricsCollector(MetricsCollector):
    """Prometheus metrics collector.

    Metric objects are created lazily on first use and cached by
    ``(name, label names)``. All calls for one metric name must use the same
    label keys, otherwise prometheus_client raises ValueError.
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        namespace: str = "secrets_manager",
        raise_on_error: bool = False,
    ):
        """Initialize Prometheus metrics collector.

        Args:
            registry: Optional Prometheus registry (uses the global default if None)
            namespace: Namespace prefix for all metrics
            raise_on_error: If True, raise on metric errors (useful for tests).
                If False, log errors and continue.
        """
        self.registry = registry
        self.namespace = namespace
        self.raise_on_error = raise_on_error
        self._metrics: dict[tuple[str, str, tuple[str, ...]], Counter | Gauge | Histogram] = {}
        self._lock = threading.Lock()
        self._metrics_errors_count = 0

    def _get_or_create(self, kind: type, name: str, tags: dict[str, str] | None):
        labelnames = tuple(sorted(tags.keys())) if tags else ()
        cache_key = (kind.__name__, name, labelnames)

        with self._lock:
            metric = self._metrics.get(cache_key)
            if metric is None:
                kwargs = {"registry": self.registry} if self.registry is not None else {}
                metric = kind(
                    name=name,
                    documentation=f"{kind.__name__} metric: {name}",
                    labelnames=labelnames,
                    namespace=self.namespace,
                    **kwargs,
                )
                self._metrics[cache_key] = metric
        return metric

    def _record(self, kind: type, method: str, name: str, value: float, tags: dict[str, str] | None) -> None:
        try:
            metric = self._get_or_create(kind, name, tags)
            target = metric.labels(**tags) if tags else metric
            getattr(target, method)(value)
            logger.debug(f"PrometheusMetricsCollector: {method} {name} {value} with tags {tags}")
        except Exception as e:
            self._metrics_errors_count += 1
            logger.error(f"Failed to record {kind.__name__.lower()} {name}: {e}")
            if self.raise_on_error:
                raise

    def increment(self, name: str, value: float = 1.0, tags: dict[str, str] | None = None) -> None:
        self._record(Counter, "inc", name, value, tags)

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._record(Histogram, "observe", name, value, tags)

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        self._record(Gauge, "set", name, value, tags)

    def get_errors_count(self) -> int:
        """Number of errors that occurred while recording metrics."""
        return self._metrics_errors_count

    def start_http_server(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose the registry on ``http://<addr>:<port>/metrics``."""
        kwargs = {"registry": self.registry} if self.registry is not None else {}
        start_http_server(port, addr=addr, **kwargs)
        logger.info(f"Prometheus metrics server listening on {addr}:{port}")
