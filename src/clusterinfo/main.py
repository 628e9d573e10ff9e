"""Main entry point for cluster-info-sync.

Copies ClusterProperty values into a YAML document stored in a ConfigMap
and keeps it up to date until the process receives a termination signal.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from datetime import UTC, datetime

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.config.config_exception import ConfigException

from .config import Config, ConfigurationError
from .reconciler import Reconciler
from .scheduler import SerialExecutor
from .source import ClusterPropertySource
from .store import ConfigMapStore
from .updater import ConfigMapUpdater

SERVICE_NAME = "cluster-info-sync"

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGHUP, signal.SIGTERM, signal.SIGQUIT)

# LogRecord attributes that are not user-supplied extra fields
_RESERVED_RECORD_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


class JsonFormatter(logging.Formatter):
    """Format logs as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure structured logging with JSON output."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Reduce noise from the Kubernetes client
    logging.getLogger("kubernetes").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_kubernetes_config() -> k8s_client.ApiClient:
    """Load in-cluster credentials, falling back to the local kubeconfig.

    Raises:
        ConfigException: If neither source is usable.
    """
    try:
        k8s_config.load_incluster_config()
    except ConfigException:
        k8s_config.load_kube_config()
    api_client = k8s_client.ApiClient()
    api_client.user_agent = SERVICE_NAME
    return api_client


def build_reconciler(config: Config, api_client: k8s_client.ApiClient) -> Reconciler:
    """Wire the source, store, executor and updater for ``config``."""
    executor = SerialExecutor(name=f"{SERVICE_NAME}-updater")
    store = ConfigMapStore(
        k8s_client.CoreV1Api(api_client),
        timeout_seconds=config.request_timeout_seconds,
    )
    updater = ConfigMapUpdater(
        store,
        executor,
        namespace=config.namespace,
        name=config.configmap_name,
        file_name=config.file_name,
    )
    source = ClusterPropertySource(k8s_client.CustomObjectsApi(api_client))
    return Reconciler(config, source, updater, executor)


async def main() -> int:
    """Run the service.

    Returns:
        Exit code (0 after a signalled shutdown, 1 on startup failure).
    """
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info(f"Starting {SERVICE_NAME}")

    try:
        config = Config.from_env()
    except ConfigurationError as e:
        logger.error("Configuration error", extra={"error": str(e)})
        return 1

    logging.getLogger().setLevel(config.log_level_number)
    logger.info(
        "Configuration loaded",
        extra={
            "namespace": config.namespace,
            "configmap_name": config.configmap_name,
            "file_name": config.file_name,
            "log_level": config.log_level,
            "opentelemetry_endpoint": config.opentelemetry_endpoint,
            "metrics_export_interval_seconds": config.metrics_export_interval_seconds,
        },
    )

    try:
        api_client = load_kubernetes_config()
    except ConfigException as e:
        logger.error("Failed to load Kubernetes credentials", extra={"error": str(e)})
        return 1

    reconciler = build_reconciler(config, api_client)

    loop = asyncio.get_running_loop()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info("Received signal", extra={"signal": sig.name})
        reconciler.shutdown()

    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

    try:
        await reconciler.run()
    except Exception as e:
        logger.exception("Unhandled exception", extra={"error": str(e)})
        return 1
    finally:
        api_client.close()

    logger.info(f"{SERVICE_NAME} stopped")
    return 0


def run() -> None:
    """Entry point for the console script."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
