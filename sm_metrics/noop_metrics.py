# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""No-op metrics collector for testing and local development."""

import logging
import threading

from .base import MetricsCollector

logger = logging.getLogger(__name__)

_Sample = tuple[str, float, dict[str, str] | None]


class NoOpMetricsCollector(MetricsCollector):
    """Metrics collector that keeps every call in memory.

    Useful for tests (assert on what was recorded) and for environments
    where no metrics backend is wanted.
    """

    def __init__(self, **kwargs):
        """Initialize no-op metrics collector.

        Args:
            **kwargs: Ignored (for compatibility with the factory)
        """
        self.counters: list[_Sample] = []
        self.observations: list[_Sample] = []
        self.gauges: list[_Sample] = []
        self._lock = threading.Lock()

    def increment(self, name: str, value: float = 1.0, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self.counters.append((name, value, tags))
        logger.debug(f"NoOpMetricsCollector: increment {name} by {value} with tags {tags}")

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self.observations.append((name, value, tags))
        logger.debug(f"NoOpMetricsCollector: observe {name} value {value} with tags {tags}")

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        with self._lock:
            self.gauges.append((name, value, tags))
        logger.debug(f"NoOpMetricsCollector: gauge {name} set to {value} with tags {tags}")

    def clear_metrics(self) -> None:
        """Clear all stored metrics."""
        with self._lock:
            self.counters.clear()
            self.observations.clear()
            self.gauges.clear()

    def get_counter_total(self, name: str, tags: dict[str, str] | None = None) -> float:
        """Get total value of a counter metric.

        Args:
            name: Name of the counter metric
            tags: Optional tags to filter by (if None, sums all matching names)

        Returns:
            Total counter value
        """
        with self._lock:
            return sum(
                value for counter_name, value, counter_tags in self.counters
                if counter_name == name and (tags is None or counter_tags == tags)
            )

    def get_observations(self, name: str, tags: dict[str, str] | None = None) -> list[float]:
        """Get all observed values for a histogram metric."""
        with self._lock:
            return [
                value for obs_name, value, obs_tags in self.observations
                if obs_name == name and (tags is None or obs_tags == tags)
            ]

    def get_gauge_value(self, name: str, tags: dict[str, str] | None = None) -> float | None:
        """Get the most recent value of a gauge metric, or None if never set."""
        with self._lock:
            matching = [
                value for gauge_name, value, gauge_tags in self.gauges
                if gauge_name == name and (tags is None or gauge_tags == tags)
            ]
        return matching[-1] if matching else None
