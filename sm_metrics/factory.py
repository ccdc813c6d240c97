# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Factory function for creating metrics collectors."""

import logging
import os
from typing import Any, Callable

from .base import MetricsCollector

logger = logging.getLogger(__name__)


def _build_prometheus(**kwargs: Any) -> MetricsCollector:
    from .prometheus_metrics import PrometheusMetricsCollector

    return PrometheusMetricsCollector(**kwargs)


def _build_noop(**kwargs: Any) -> MetricsCollector:
    from .noop_metrics import NoOpMetricsCollector

    return NoOpMetricsCollector(**kwargs)


def create_metrics_collector(metrics_type: str | None = None, **kwargs: Any) -> MetricsCollector:
    """Create a metrics collector by driver name.

    Supported drivers:
    - "prometheus": Prometheus metrics with registry-based collection
    - "noop": In-memory collector for tests

    Args:
        metrics_type: Driver name. Defaults to METRICS_TYPE env or "noop".
        **kwargs: Driver-specific options (e.g. ``namespace``, ``registry``)

    Returns:
        MetricsCollector instance

    Raises:
        ValueError: If metrics_type is unknown
    """
    metrics_type = (metrics_type or os.getenv("METRICS_TYPE") or "noop").lower()
    drivers: dict[str, Callable[..., MetricsCollector]] = {
        "prometheus": _build_prometheus,
        "noop": _build_noop,
    }
    try:
        factory = drivers[metrics_type]
    except KeyError as exc:
        raise ValueError(
            f"Unknown metrics driver: {metrics_type}. Supported drivers: {', '.join(sorted(drivers))}"
        ) from exc

    logger.debug(f"Creating {metrics_type} metrics collector")
    return factory(**kwargs)
