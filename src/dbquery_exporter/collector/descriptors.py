"""Metric descriptors built once from the configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from ..config import ExporterConfig, MetricKind, MetricSpec, sanitize_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricDescriptor:
    """Identity of an exported metric: name, help text, label schema and kind."""

    name: str
    documentation: str
    labels: tuple[str, ...]
    kind: MetricKind

    def new_family(self) -> Metric:
        """Return an empty metric family carrying this descriptor."""
        if self.kind is MetricKind.COUNTER:
            return CounterMetricFamily(self.name, self.documentation, labels=self.labels)
        return GaugeMetricFamily(self.name, self.documentation, labels=self.labels)


def build_descriptor(namespace: str, spec: MetricSpec) -> MetricDescriptor | None:
    """Build the descriptor for *spec*, or None if its kind is unsupported."""
    if spec.kind is None:
        return None
    return MetricDescriptor(
        name=f"{namespace}_{spec.name}",
        documentation=spec.description,
        labels=tuple(sanitize_name(label) for label in spec.labels),
        kind=spec.kind,
    )


class DescriptorRegistry:
    """Descriptors keyed by metric name, populated once at construction.

    The registry is never written after ``__init__``, so concurrent scrapes
    only ever read it.
    """

    def __init__(self, config: ExporterConfig) -> None:
        self._descriptors: dict[str, MetricDescriptor] = {}
        for name, spec in config.metrics.items():
            descriptor = build_descriptor(config.namespace, spec)
            if descriptor is None:
                continue
            self._descriptors[name] = descriptor
            logger.info("Metric description for %r registered as %s", name, descriptor.name)

    def get(self, name: str) -> MetricDescriptor | None:
        return self._descriptors.get(name)

    def __iter__(self) -> Iterator[MetricDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)
