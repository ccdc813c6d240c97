# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Secrets Manager contributors

"""Secrets Manager: materializes SecretDefinitions from a secret backend."""

import argparse
import signal
import sys
import threading

from kubernetes import client
from kubernetes import config as kube_config

from sm_backend import create_backend_client
from sm_config import ConfigValidationError
from sm_logging import create_logger
from sm_metrics import PrometheusMetricsCollector, create_metrics_collector

from . import __version__
from .config import load_service_config
from .controller import Controller
from .crd import create_crd
from .events import EventRecorder
from .informer import DEFAULT_VERSION, SecretDefinitionInformer
from .kubernetes_client import KubernetesSecretStore
from .synchronizer import SecretSynchronizer
from .workqueue import ItemExponentialFailureRateLimiter, RetryConfig

# Bootstrap logger before configuration is loaded
bootstrap_logger = create_logger(logger_type="stdout", level="INFO", name="secrets-manager-bootstrap")


def load_kubernetes_config(in_cluster: bool, kubeconfig: str | None) -> None:
    if in_cluster:
        kube_config.load_incluster_config()
    else:
        kube_config.load_kube_config(config_file=kubeconfig)


def build_backend(config):
    if config.backend_type == "vault":
        return create_backend_client(
            "vault",
            url=config.vault_url,
            token=config.vault_token,
            engine=config.vault_engine,
            max_token_ttl=config.vault_max_token_ttl,
            token_polling_period=config.vault_token_polling_period,
            renew_ttl_increment=config.vault_renew_ttl_increment,
            timeout=config.backend_timeout_seconds,
        )
    if config.backend_type == "azure":
        return create_backend_client(
            "azure",
            vault_url=config.azure_key_vault_url,
            vault_name=config.azure_key_vault_name,
        )
    return create_backend_client("local", base_path=config.backend_base_path)


def install_signal_handlers(stop_event: threading.Event, logger) -> None:
    def signal_handler(signum, frame):
        logger.info("Received shutdown signal", signal=signum)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP):
        signal.signal(sig, signal_handler)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="secrets-manager",
        description="Materialize SecretDefinitions into Kubernetes Secrets.",
    )
    parser.add_argument("--version", action="store_true", help="Display Secrets Manager version")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the controller until a shutdown signal arrives."""
    args = parse_args(argv)
    if args.version:
        print(f"Secrets Manager {__version__}")
        return 0

    bootstrap_logger.info("Starting Secrets Manager", version=__version__)

    try:
        config = load_service_config()
    except ConfigValidationError as e:
        bootstrap_logger.error("Invalid configuration", error=str(e))
        return 1

    logger = create_logger(logger_type=config.log_type, level=config.log_level, name="secrets-manager")

    metrics = create_metrics_collector(config.metrics_type)
    if isinstance(metrics, PrometheusMetricsCollector):
        metrics.start_http_server(config.metrics_port)

    try:
        backend = build_backend(config)
        load_kubernetes_config(config.in_cluster, config.kubeconfig)
    except Exception as e:
        logger.exception("Failed to initialize clients", error=str(e))
        return 1

    core_api = client.CoreV1Api()
    custom_api = client.CustomObjectsApi()

    try:
        if config.create_crd:
            create_crd(client.ApiextensionsV1Api(), logger, group=config.crd_group)

        stop_event = threading.Event()
        install_signal_handlers(stop_event, logger)

        informer = SecretDefinitionInformer(
            custom_api,
            logger,
            group=config.crd_group,
            namespace=config.watch_namespace,
            resync_period=config.resync_period_seconds,
        )
        target_store = KubernetesSecretStore(core_api, logger=logger)
        synchronizer = SecretSynchronizer(backend, target_store, logger, metrics=metrics)
        recorder = EventRecorder(core_api, logger, api_version=f"{config.crd_group}/{DEFAULT_VERSION}")
        rate_limiter = ItemExponentialFailureRateLimiter(
            RetryConfig(
                base_delay_ms=config.retry_base_delay_ms,
                max_delay_ms=config.retry_max_delay_ms,
            )
        )
        controller = Controller(
            target_store,
            custom_api,
            informer,
            synchronizer,
            logger,
            metrics=metrics,
            recorder=recorder,
            rate_limiter=rate_limiter,
            max_retries=config.max_retries,
        )

        informer.start(stop_event)
        controller.run(config.worker_count, stop_event)
        informer.request_stop()
    except Exception as e:
        logger.exception("Secrets Manager failed", error=str(e))
        return 1

    logger.info("Secrets Manager stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
