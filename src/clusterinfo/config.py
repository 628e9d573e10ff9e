"""Configuration management with validation.

All settings are read once from ``NSM_``-prefixed environment variables at
startup and are immutable for the lifetime of the process.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


ENV_PREFIX = "NSM_"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_CONFIGMAP_NAME = "cluster-info"
DEFAULT_NAMESPACE = "default"
DEFAULT_FILE_NAME = "config.yaml"
DEFAULT_TRANSLATION_MAP = "id.k8s.io:clusterName"
DEFAULT_OPENTELEMETRY_ENDPOINT = "otel-collector.observability.svc.cluster.local:4317"
DEFAULT_METRICS_EXPORT_INTERVAL_SECONDS = 10

# Store calls and the poll cadence are both fixed at one second by default
DEFAULT_POLL_INTERVAL_SECONDS = 1
DEFAULT_REQUEST_TIMEOUT_SECONDS = 1
DEFAULT_DRAIN_TIMEOUT_SECONDS = 5

# TRACE is accepted for compatibility with existing deployments
LOG_LEVELS = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "FATAL": logging.CRITICAL,
    "CRITICAL": logging.CRITICAL,
}

# Kubernetes object name rules
VALID_NAMESPACE_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"
VALID_CONFIGMAP_NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
VALID_DATA_KEY_PATTERN = r"^[-._a-zA-Z0-9]+$"
MAX_NAMESPACE_LENGTH = 63
MAX_CONFIGMAP_NAME_LENGTH = 253

# Go-style durations: "10s", "500ms", "1m30s"
DURATION_PART_PATTERN = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|\u00b5s|ms|s|m|h)"
DURATION_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "\u00b5s": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_translation_map(value: str) -> dict[str, str]:
    """Parse a ``from:to,from2:to2`` string into a translation table.

    Whitespace around entries is ignored and empty entries are skipped.

    Raises:
        ConfigurationError: If an entry has no ``:`` separator or an empty
            source name.
    """
    table: dict[str, str] = {}
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        source, sep, target = entry.partition(":")
        source = source.strip()
        if not sep or not source:
            raise ConfigurationError(
                f"{ENV_PREFIX}TRANSLATION_MAP entries must look like 'from:to': {entry!r}"
            )
        table[source] = target.strip()
    return table


def parse_duration(value: str) -> float:
    """Parse a duration into seconds.

    Accepts a bare number of seconds (``"10"``, ``"0.5"``) or a Go-style
    duration made of number/unit pairs (``"10s"``, ``"500ms"``, ``"1m30s"``).

    Raises:
        ValueError: If the value is neither.
    """
    value = value.strip()
    try:
        return float(value)
    except ValueError:
        pass

    sign = -1.0 if value.startswith("-") else 1.0
    body = value.lstrip("+-")
    parts = re.findall(DURATION_PART_PATTERN, body)
    if not parts or "".join(number + unit for number, unit in parts) != body:
        raise ValueError(f"invalid duration: {value!r}")
    return sign * sum(float(number) * DURATION_UNIT_SECONDS[unit] for number, unit in parts)


@dataclass(frozen=True)
class Config:
    """Process configuration loaded from environment variables.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing in the loop.
    """

    log_level: str = DEFAULT_LOG_LEVEL

    # Target document identity
    namespace: str = DEFAULT_NAMESPACE
    configmap_name: str = DEFAULT_CONFIGMAP_NAME
    file_name: str = DEFAULT_FILE_NAME

    # Source property name -> output key
    translation_map: Mapping[str, str] = field(
        default_factory=lambda: parse_translation_map(DEFAULT_TRANSLATION_MAP)
    )

    # Telemetry
    opentelemetry_endpoint: str = DEFAULT_OPENTELEMETRY_ENDPOINT
    metrics_export_interval_seconds: float = DEFAULT_METRICS_EXPORT_INTERVAL_SECONDS

    # Timing
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    drain_timeout_seconds: float = DEFAULT_DRAIN_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration and freeze the translation table."""
        errors: list[str] = []

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"{ENV_PREFIX}LOG_LEVEL is not a known level: {self.log_level}")

        if not self.namespace:
            errors.append(f"{ENV_PREFIX}NAMESPACE is required")
        elif len(self.namespace) > MAX_NAMESPACE_LENGTH or not re.match(
            VALID_NAMESPACE_PATTERN, self.namespace
        ):
            errors.append(f"{ENV_PREFIX}NAMESPACE is not a valid namespace: {self.namespace}")

        if not self.configmap_name:
            errors.append(f"{ENV_PREFIX}CONFIGMAP_NAME is required")
        elif len(self.configmap_name) > MAX_CONFIGMAP_NAME_LENGTH or not re.match(
            VALID_CONFIGMAP_NAME_PATTERN, self.configmap_name
        ):
            errors.append(
                f"{ENV_PREFIX}CONFIGMAP_NAME is not a valid ConfigMap name: {self.configmap_name}"
            )

        if not self.file_name:
            errors.append(f"{ENV_PREFIX}FILE_NAME is required")
        elif not re.match(VALID_DATA_KEY_PATTERN, self.file_name):
            errors.append(f"{ENV_PREFIX}FILE_NAME is not a valid data key: {self.file_name}")

        if self.metrics_export_interval_seconds <= 0:
            errors.append(f"{ENV_PREFIX}METRICS_EXPORT_INTERVAL must be positive")
        if self.poll_interval_seconds <= 0:
            errors.append(f"{ENV_PREFIX}POLL_INTERVAL must be positive")
        if self.request_timeout_seconds <= 0:
            errors.append(f"{ENV_PREFIX}REQUEST_TIMEOUT must be positive")
        if self.drain_timeout_seconds < 0:
            errors.append(f"{ENV_PREFIX}DRAIN_TIMEOUT cannot be negative")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

        object.__setattr__(self, "translation_map", MappingProxyType(dict(self.translation_map)))

    @property
    def log_level_number(self) -> int:
        """Numeric logging level for the configured level name."""
        return LOG_LEVELS[self.log_level.upper()]

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            NSM_LOG_LEVEL: Log level (default: INFO)
            NSM_NAMESPACE: Namespace of the target ConfigMap (default: default)
            NSM_CONFIGMAP_NAME: ConfigMap to write (default: cluster-info)
            NSM_FILE_NAME: Data key holding the YAML document (default: config.yaml)
            NSM_TRANSLATION_MAP: Comma-separated ``from:to`` property renames
                (default: id.k8s.io:clusterName)
            NSM_OPENTELEMETRYENDPOINT: OpenTelemetry collector endpoint
            NSM_METRICS_EXPORT_INTERVAL: Interval between metric exports (default: 10s)
            NSM_POLL_INTERVAL: Interval between registry polls (default: 1s)
            NSM_REQUEST_TIMEOUT: Timeout for each ConfigMap call (default: 1s)
            NSM_DRAIN_TIMEOUT: Time to wait for queued updates on shutdown (default: 5s)

        Intervals and timeouts accept Go-style durations (``10s``, ``500ms``,
        ``1m``) or a bare number of seconds.
        """

        def get_str(key: str, default: str) -> str:
            return os.environ.get(ENV_PREFIX + key, default)

        def get_duration(key: str, default: float) -> float:
            value = os.environ.get(ENV_PREFIX + key)
            if value is None:
                return default
            try:
                return parse_duration(value)
            except ValueError as e:
                raise ConfigurationError(
                    f"{ENV_PREFIX}{key} must be a duration such as 10s or 500ms: {value}"
                ) from e

        return cls(
            log_level=get_str("LOG_LEVEL", DEFAULT_LOG_LEVEL),
            namespace=get_str("NAMESPACE", DEFAULT_NAMESPACE),
            configmap_name=get_str("CONFIGMAP_NAME", DEFAULT_CONFIGMAP_NAME),
            file_name=get_str("FILE_NAME", DEFAULT_FILE_NAME),
            translation_map=parse_translation_map(
                get_str("TRANSLATION_MAP", DEFAULT_TRANSLATION_MAP)
            ),
            opentelemetry_endpoint=get_str(
                "OPENTELEMETRYENDPOINT", DEFAULT_OPENTELEMETRY_ENDPOINT
            ),
            metrics_export_interval_seconds=get_duration(
                "METRICS_EXPORT_INTERVAL", DEFAULT_METRICS_EXPORT_INTERVAL_SECONDS
            ),
            poll_interval_seconds=get_duration("POLL_INTERVAL", DEFAULT_POLL_INTERVAL_SECONDS),
            request_timeout_seconds=get_duration(
                "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            drain_timeout_seconds=get_duration("DRAIN_TIMEOUT", DEFAULT_DRAIN_TIMEOUT_SECONDS),
        )
