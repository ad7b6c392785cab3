"""Configuration loading for dbquery_exporter."""

from __future__ import annotations

import enum
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "query_exporter"
DEFAULT_BIND = "0.0.0.0:9104"

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")


class ConfigError(Exception):
    """Raised when the configuration file cannot be loaded."""


class MetricKind(str, enum.Enum):
    """Supported metric types."""

    COUNTER = "counter"
    GAUGE = "gauge"

    @classmethod
    def parse(cls, value: Any) -> MetricKind | None:
        """Return the kind for *value* (case-insensitive), or None if unsupported."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class MetricSpec:
    """One configured query and how its rows map to samples."""

    name: str
    query: str
    kind: MetricKind | None
    type_name: str = ""
    description: str = ""
    labels: tuple[str, ...] = ()
    value: str = ""


@dataclass
class ServerConfig:
    """HTTP exposition settings."""

    bind: str = DEFAULT_BIND


@dataclass
class ExporterConfig:
    """Top-level exporter configuration."""

    dsn: str = ""
    namespace: str = DEFAULT_NAMESPACE
    metrics: dict[str, MetricSpec] = field(default_factory=dict)
    server: ServerConfig = field(default_factory=ServerConfig)

    def invalid_metrics(self) -> list[MetricSpec]:
        """Metrics whose type is not a supported kind."""
        return [spec for spec in self.metrics.values() if spec.kind is None]


def sanitize_name(name: str) -> str:
    """Turn *name* into a valid Prometheus metric or label name."""
    sanitized = _INVALID_NAME_CHARS.sub("_", str(name))
    if not sanitized or sanitized[0].isdigit():
        sanitized = "_" + sanitized
    return sanitized


def _lower_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Match keys case-insensitively, so both ``DSN`` and ``dsn`` work."""
    return {str(key).lower(): value for key, value in data.items()}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using QUERY_EXPORTER_ prefix."""
    env_map = {
        "QUERY_EXPORTER_DSN": ("dsn",),
        "QUERY_EXPORTER_NAMESPACE": ("namespace",),
        "QUERY_EXPORTER_BIND": ("server", "bind"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                if not isinstance(obj.get(part), dict):
                    obj[part] = {}
                obj = obj[part]
            obj[path[-1]] = value
    return data


def _labels_from(raw: Any, metric_name: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ConfigError(f"labels for metric {metric_name!r} must be a list")
    labels = tuple(str(label) for label in raw)

    seen: set[str] = set()
    for label in labels:
        exported = sanitize_name(label)
        if exported.startswith("__"):
            raise ConfigError(f"label {label!r} of metric {metric_name!r} uses the reserved \"__\" prefix")
        if exported in seen:
            raise ConfigError(f"label {label!r} of metric {metric_name!r} duplicates label {exported!r}")
        seen.add(exported)
    return labels


def _metric_from_dict(name: str, raw: Any) -> MetricSpec:
    if not isinstance(raw, dict):
        raise ConfigError(f"metric {name!r} must be a mapping")
    data = _lower_keys(raw)
    type_name = str(data.get("type") or "")
    kind = MetricKind.parse(type_name)
    if kind is None:
        logger.error("Metric %s has unsupported type %r; it will not be exported", name, type_name)
    return MetricSpec(
        name=sanitize_name(name),
        query=str(data.get("query") or ""),
        kind=kind,
        type_name=type_name,
        description=str(data.get("description") or ""),
        labels=_labels_from(data.get("labels"), name),
        value=str(data.get("value") or ""),
    )


def _dict_to_config(data: dict[str, Any]) -> ExporterConfig:
    """Convert a raw dictionary to an ExporterConfig dataclass."""
    raw_metrics = data.get("metrics") or {}
    if not isinstance(raw_metrics, dict):
        raise ConfigError("metrics must be a mapping of metric name to query definition")

    metrics: dict[str, MetricSpec] = {}
    for raw_name, raw_metric in raw_metrics.items():
        spec = _metric_from_dict(str(raw_name), raw_metric)
        if spec.name in metrics:
            raise ConfigError(f"metric {raw_name!r} collides with another metric named {spec.name!r}")
        metrics[spec.name] = spec

    raw_server = data.get("server") or {}
    if not isinstance(raw_server, dict):
        raise ConfigError("server must be a mapping")
    server_data = _lower_keys(raw_server)
    if "bind" in server_data:
        server_data["bind"] = str(server_data["bind"])
    return ExporterConfig(
        dsn=str(data.get("dsn") or ""),
        namespace=sanitize_name(data.get("namespace") or DEFAULT_NAMESPACE),
        metrics=metrics,
        server=ServerConfig(**{
            k: v for k, v in server_data.items()
            if k in ServerConfig.__dataclass_fields__
        }),
    )


def load_config(path: str | Path) -> ExporterConfig:
    """Load configuration from a YAML file with environment overrides.

    Raises :class:`ConfigError` if the file is missing or malformed.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"failed to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse config file {path}: {exc}") from exc

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"config file {path} must contain a mapping")

    data = _apply_env_overrides(_lower_keys(loaded))
    config = _dict_to_config(data)
    logger.info("Loaded %d metric(s) from %s", len(config.metrics), path)
    return config
